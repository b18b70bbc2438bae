import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.errors import service_errors
from app.deps.common import get_read_store, get_trace_id
from service.dto import ViralResponseDTO
from service.viral_service import get_viral_videos

logger = logging.getLogger(__name__)
router = APIRouter(tags=["viral"])


def parse_period(period: Optional[str], trace_id: str) -> Optional[int]:
    """'all' or absent means full history, otherwise a day count"""
    if period is None or period == "all":
        return None
    try:
        days_ago = int(period)
    except ValueError:
        days_ago = -1
    if days_ago < 0:
        raise HTTPException(status_code=400, detail={
            "error": {
                "code": "INVALID_PERIOD",
                "message": "Invalid period parameter",
                "trace_id": trace_id
            }
        })
    return days_ago


@router.get("/viral", response_model=ViralResponseDTO)
def viral_videos(
    period: Optional[str] = Query(None, description="Days back, or 'all'"),
    video_type: Literal["normal", "shorts", "all"] = Query("all"),
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> ViralResponseDTO:
    """Videos whose views are outliers for their channel"""
    days_ago = parse_period(period, trace_id)
    with service_errors(trace_id):
        return get_viral_videos(store, days_ago, video_type, trace_id=trace_id)
