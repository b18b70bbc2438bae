"""Mapping of service errors to HTTP error responses"""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException

from core.errors import ChannelNotFoundError, InvalidGroupError, ServiceError, UpstreamError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ChannelNotFoundError, 404),
    (InvalidGroupError, 400),
    (UpstreamError, 503),
)


def _error_detail(code: str, message: str, trace_id: str) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "trace_id": trace_id
        }
    }


@contextmanager
def service_errors(trace_id: str) -> Iterator[None]:
    """Translate errors raised inside a route into HTTP responses"""
    try:
        yield

    except HTTPException:
        raise

    except ServiceError as e:
        status_code = next((status for cls, status in STATUS_BY_ERROR if isinstance(e, cls)), 500)
        log = logger.warning if status_code < 500 else logger.error
        log("Service error", extra={
            "trace_id": trace_id,
            "error_code": e.code,
            "error_message": e.message
        })
        raise HTTPException(status_code=status_code, detail=_error_detail(e.code, e.message, trace_id))

    except Exception as e:
        logger.error("Unexpected error", exc_info=True, extra={
            "trace_id": trace_id,
            "error_type": type(e).__name__,
            "error_message": str(e)
        })
        raise HTTPException(
            status_code=500,
            detail=_error_detail("INTERNAL_ERROR", "Internal server error", trace_id)
        )
