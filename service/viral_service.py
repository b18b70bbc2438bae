"""Viral video service"""
import logging
import time
from typing import Optional

from analysis.viral import ViralVideoDetector
from service.dto import ViralResponseDTO

logger = logging.getLogger(__name__)


def get_viral_videos(store, days_ago: Optional[int], video_type: Optional[str], *,
                     trace_id: str) -> ViralResponseDTO:
    """
    Viral videos for the dashboard.

    A failed detection pass is logged and answered with an empty list so the
    page keeps rendering; `detection_failed` tells the two cases apart.

    Args:
        store: Record store (cached or direct)
        days_ago: Trailing window in days, None for full history
        video_type: "normal", "shorts" or "all"
        trace_id: Request tracing ID

    Returns:
        ViralResponseDTO: Ranked viral videos
    """
    start_time = time.time()

    detection = ViralVideoDetector(store).detect(days_ago, video_type)
    latency_ms = int((time.time() - start_time) * 1000)

    if not detection.ok:
        logger.error("Viral detection failed, returning empty result", extra={
            "trace_id": trace_id,
            "latency_ms": latency_ms,
            "error_type": type(detection.error).__name__,
            "error_message": str(detection.error)
        })
        return ViralResponseDTO(videos=[], total=0, detection_failed=True)

    logger.info("Viral videos served", extra={
        "trace_id": trace_id,
        "latency_ms": latency_ms,
        "days_ago": days_ago,
        "video_type": video_type or "all"
    })
    return ViralResponseDTO(videos=detection.videos, total=len(detection.videos))
