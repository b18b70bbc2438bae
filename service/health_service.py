"""Health service for basic health checks"""
import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.cache import MemoryCache
from service.dto import HealthResponseDTO

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


def get_health(session: Session, cache: MemoryCache) -> HealthResponseDTO:
    """
    Get basic health status.

    The process answers even when the database does not; the probe result is
    reported in `database` instead.

    Returns:
        HealthResponseDTO: Health check result
    """
    try:
        session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("Database probe failed", extra={
            "error_type": type(e).__name__,
            "error_message": str(e)
        })
        database = "unavailable"

    return HealthResponseDTO(
        ok=True,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=APP_VERSION,
        database=database,
        cache_entries=cache.stats()["size"]
    )
