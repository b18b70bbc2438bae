"""Health check API endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps.common import get_cache, get_db_session
from core.cache import MemoryCache
from service.health_service import get_health
from service.dto import HealthResponseDTO

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponseDTO)
def health_check(
    session: Session = Depends(get_db_session),
    cache: MemoryCache = Depends(get_cache)
) -> HealthResponseDTO:
    """
    Liveness check with a database probe.

    Returns:
        HealthResponseDTO: Health status, database state and cache size
    """
    return get_health(session, cache)
