"""Viral video detection.

Each channel's recent view counts form a baseline distribution; a video is
viral when its views sit at least two population standard deviations above
the channel mean. Channels with fewer than five videos in the window, or
with identical view counts across all of them, produce no candidates.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from analysis.schemas import ViralLevel, ViralVideo
from analysis.windows import window_start

logger = logging.getLogger(__name__)

MIN_VIDEOS_FOR_BASELINE = 5
VIRAL_Z_THRESHOLD = 2.0

# Closed-below lower bounds, checked from the top tier down
LEVEL_THRESHOLDS = (
    (10.0, ViralLevel.DIAMOND),
    (5.0, ViralLevel.GOLD),
    (3.0, ViralLevel.SILVER),
)


@dataclass
class ViralDetection:
    """Outcome of one detection pass: the ranked videos, or the failure"""
    videos: List[ViralVideo] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def compute_baseline(views: Sequence[float]) -> Tuple[float, float]:
    """Population mean and standard deviation (ddof=0) of view counts"""
    values = np.asarray(views, dtype=float)
    return float(values.mean()), float(values.std())


def classify_viral_level(z_score: float) -> ViralLevel:
    for threshold, level in LEVEL_THRESHOLDS:
        if z_score >= threshold:
            return level
    return ViralLevel.BRONZE


def score_channel_videos(channel, videos: Sequence) -> List[Tuple[float, ViralVideo]]:
    """Viral videos of one channel paired with their unrounded z-scores"""
    if len(videos) < MIN_VIDEOS_FOR_BASELINE:
        return []

    views = np.array([v.view_count or 0 for v in videos], dtype=float)
    mean, std = compute_baseline(views)
    if std == 0:
        return []

    z_scores = (views - mean) / std
    # Count of strictly smaller view counts for every video
    smaller = np.searchsorted(np.sort(views), views, side="left")

    scored = []
    for position in np.flatnonzero(z_scores >= VIRAL_Z_THRESHOLD):
        video = videos[position]
        z_score = float(z_scores[position])
        scored.append((z_score, ViralVideo(
            id=video.id,
            title=video.title,
            thumbnail_url=video.thumbnail_url,
            published_at=video.published_at,
            view_count=video.view_count or 0,
            like_count=video.like_count or 0,
            comment_count=video.comment_count or 0,
            video_type=video.video_type or "normal",
            channel_id=channel.id,
            channel_title=channel.title,
            channel_average=round(mean),
            z_score=round(z_score, 2),
            multiplier=round(views[position] / mean, 1),
            viral_level=classify_viral_level(z_score),
            percentile=round(float(smaller[position]) / len(videos) * 100, 1),
        )))
    return scored


class ViralVideoDetector:
    def __init__(self, store):
        self.store = store

    def detect(self, days_ago: Optional[int] = None, video_type: Optional[str] = None,
               now: Optional[datetime] = None) -> ViralDetection:
        """Find viral videos across all channels, highest z-score first.

        Store and computation failures are returned in `ViralDetection.error`
        instead of being raised, so one broken read never takes down the pass
        for its caller.
        """
        trace_id = f"viral_detection_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        if video_type == "all":
            video_type = None

        try:
            logger.info("Starting viral detection", extra={
                "trace_id": trace_id,
                "job": "viral_detection",
                "days_ago": days_ago,
                "video_type": video_type or "all"
            })

            channels = {channel.id: channel for channel in self.store.list_channels()}
            videos = self.store.list_videos_since(
                window_start(days_ago, now, start_of_day=True), video_type
            )

            if not videos:
                logger.info("No videos in window", extra={"trace_id": trace_id})
                return ViralDetection()

            scored = self._score_by_channel(channels, videos, trace_id)
            scored.sort(key=lambda item: item[0], reverse=True)

            logger.info("Viral detection completed", extra={
                "trace_id": trace_id,
                "job": "viral_detection",
                "total_videos": len(videos),
                "viral_videos": len(scored)
            })

            return ViralDetection(videos=[video for _, video in scored])

        except Exception as e:
            logger.error(f"Viral detection failed: {e}", exc_info=True, extra={
                "trace_id": trace_id,
                "job": "viral_detection"
            })
            return ViralDetection(error=e)

    def _score_by_channel(self, channels: Dict[str, object], videos: List,
                          trace_id: str) -> List[Tuple[float, ViralVideo]]:
        frame = pd.DataFrame({"channel_id": [v.channel_id for v in videos]})
        scored = []
        skipped = 0

        for channel_id, group in frame.groupby("channel_id", sort=False):
            channel = channels.get(channel_id)
            if channel is None:
                skipped += 1
                continue
            channel_scored = score_channel_videos(channel, [videos[i] for i in group.index])
            scored.extend(channel_scored)

        if skipped:
            logger.warning("Videos reference unknown channels", extra={
                "trace_id": trace_id,
                "unknown_channels": skipped
            })
        return scored
