import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from app.api.errors import service_errors
from app.deps.common import get_read_store, get_trace_id
from service.dto import GroupRankingResponseDTO, PeriodRankingResponseDTO
from service.ranking_service import get_group_ranking, get_period_ranking

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ranking", tags=["ranking"])


@router.get("/period", response_model=PeriodRankingResponseDTO)
def period_ranking(
    period: int = Query(30, ge=0, description="Trailing window in days"),
    video_type: Optional[Literal["normal", "shorts", "live"]] = Query(None, alias="type"),
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> PeriodRankingResponseDTO:
    """Channels ranked by views published in the window"""
    logger.info("Period ranking request received", extra={
        "trace_id": trace_id,
        "days_ago": period,
        "video_type": video_type or "all"
    })
    with service_errors(trace_id):
        return get_period_ranking(store, period, video_type, trace_id=trace_id)


@router.get("/groups", response_model=GroupRankingResponseDTO)
def group_ranking(
    period: int = Query(30, ge=0, description="Trailing window in days"),
    video_type: Optional[Literal["normal", "shorts"]] = Query(None, alias="type"),
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> GroupRankingResponseDTO:
    """Channel groups ranked by summed views in the window"""
    with service_errors(trace_id):
        return get_group_ranking(store, period, video_type, trace_id=trace_id)
