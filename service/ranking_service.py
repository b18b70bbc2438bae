"""Channel and group ranking service"""
import logging
from typing import Optional

from analysis.channel_groups import ChannelGroupAggregator
from analysis.period_ranking import PeriodRankingAggregator
from service.common import upstream_errors
from service.dto import GroupRankingResponseDTO, PeriodRankingResponseDTO

logger = logging.getLogger(__name__)


def get_period_ranking(store, days_ago: int, video_type: Optional[str], *,
                       trace_id: str) -> PeriodRankingResponseDTO:
    """Every tracked channel ranked by views over the last `days_ago` days"""
    with upstream_errors("Period ranking", trace_id):
        ranking = PeriodRankingAggregator(store).rank(days_ago, video_type)

    logger.info("Period ranking served", extra={
        "trace_id": trace_id,
        "days_ago": days_ago,
        "video_type": video_type or "all"
    })
    return PeriodRankingResponseDTO(ranking=ranking, period=days_ago)


def get_group_ranking(store, days_ago: Optional[int], video_type: Optional[str], *,
                      trace_id: str) -> GroupRankingResponseDTO:
    """Every channel group ranked by summed views"""
    with upstream_errors("Group ranking", trace_id):
        ranking = ChannelGroupAggregator(store).rank_groups(days_ago, video_type)

    logger.info("Group ranking served", extra={
        "trace_id": trace_id,
        "days_ago": days_ago,
        "groups": len(ranking)
    })
    return GroupRankingResponseDTO(ranking=ranking)
