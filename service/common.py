"""Helpers shared by the service modules"""
import logging
from contextlib import contextmanager
from typing import Iterator

import httpx
from sqlalchemy.exc import SQLAlchemyError

from core.errors import UpstreamError

logger = logging.getLogger(__name__)


@contextmanager
def upstream_errors(operation: str, trace_id: str) -> Iterator[None]:
    """Re-raise database and YouTube API failures as UpstreamError"""
    try:
        yield
    except (SQLAlchemyError, httpx.HTTPError) as e:
        logger.error(f"{operation} failed", extra={
            "trace_id": trace_id,
            "error_type": type(e).__name__,
            "error_message": str(e)
        })
        raise UpstreamError(f"{operation} failed: {e}") from e
