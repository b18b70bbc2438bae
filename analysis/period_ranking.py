"""Channel ranking over a trailing day window"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from analysis.schemas import ChannelRef, PeriodChannelMetrics, VideoSummary, engagement_rate
from analysis.windows import window_start

logger = logging.getLogger(__name__)

METRIC_COLUMNS = ["view_count", "like_count", "comment_count"]


class PeriodRankingAggregator:
    def __init__(self, store):
        self.store = store

    def rank(self, days_ago: int, video_type: Optional[str] = None,
             now: Optional[datetime] = None) -> List[PeriodChannelMetrics]:
        """Every known channel with its totals over the last `days_ago` days.

        Channels without videos in the window are included with zeroed
        metrics. Sorted by period views, highest first; ties keep the store's
        channel order. Store errors propagate.
        """
        channels = self.store.list_channels()
        videos = self.store.list_videos_since(window_start(days_ago, now), video_type)

        totals = self._totals_by_channel(videos)
        summaries: Dict[str, List[VideoSummary]] = defaultdict(list)
        for video in videos:
            summaries[video.channel_id].append(VideoSummary.model_validate(video))

        ranking = []
        for channel in channels:
            views, likes, comments, count = totals.get(channel.id, (0, 0, 0, 0))
            ranking.append(PeriodChannelMetrics(
                **ChannelRef.model_validate(channel).model_dump(),
                period_views=views,
                period_likes=likes,
                period_comments=comments,
                period_videos=count,
                engagement_rate=engagement_rate(likes, comments, views),
                videos=summaries.get(channel.id, []),
            ))

        ranking.sort(key=lambda entry: entry.period_views, reverse=True)

        logger.info("Period ranking computed", extra={
            "days_ago": days_ago,
            "video_type": video_type or "all",
            "channels": len(ranking),
            "videos": len(videos)
        })
        return ranking

    @staticmethod
    def _totals_by_channel(videos: List) -> Dict[str, tuple]:
        """channel_id -> (views, likes, comments, video count)"""
        if not videos:
            return {}

        frame = pd.DataFrame(
            [(v.channel_id, v.view_count or 0, v.like_count or 0, v.comment_count or 0) for v in videos],
            columns=["channel_id"] + METRIC_COLUMNS,
        )
        grouped = frame.groupby("channel_id", sort=False)
        sums = grouped[METRIC_COLUMNS].sum()
        counts = grouped.size()

        return {
            channel_id: (int(row.view_count), int(row.like_count), int(row.comment_count), int(counts[channel_id]))
            for channel_id, row in sums.iterrows()
        }


def rank_by_period(store, days_ago: int, video_type: Optional[str] = None,
                   now: Optional[datetime] = None) -> List[PeriodChannelMetrics]:
    return PeriodRankingAggregator(store).rank(days_ago, video_type, now)
