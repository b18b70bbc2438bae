"""Channel listing, history and group management service"""
import logging
from typing import Optional

from analysis.channel_groups import (
    ChannelGroupAggregator,
    add_secondary_channel,
    reconcile_channel_groups,
    remove_secondary_channel,
)
from analysis.schemas import ChannelRef, GroupMetrics, VideoSummary
from analysis.windows import window_start
from collection.jobs.collector_channels import ChannelCollector
from core.cache import MemoryCache
from core.errors import ChannelNotFoundError
from service.common import upstream_errors
from service.dto import (
    AddChannelResponseDTO,
    ChannelGroupResponseDTO,
    ChannelListResponseDTO,
    ChannelStatsDTO,
    ChannelStatsResponseDTO,
    ChannelVideosResponseDTO,
    GroupChangeRequestDTO,
    GroupChangeResponseDTO,
    ReconcileResponseDTO,
    RefreshResponseDTO,
)

logger = logging.getLogger(__name__)


def list_channels(store, category: Optional[str], *, trace_id: str) -> ChannelListResponseDTO:
    with upstream_errors("Channel listing", trace_id):
        channels = store.list_channels(category)
    return ChannelListResponseDTO(channels=[ChannelRef.model_validate(c) for c in channels])


def get_channel_stats(store, channel_id: str, limit: int, *, trace_id: str) -> ChannelStatsResponseDTO:
    with upstream_errors("Channel stats", trace_id):
        stats = store.list_channel_stats(channel_id, limit)
    return ChannelStatsResponseDTO(stats=[ChannelStatsDTO.model_validate(s) for s in stats])


def list_channel_videos(store, channel_id: str, days_ago: int, video_type: Optional[str],
                        limit: int, last_video_id: Optional[str], *,
                        trace_id: str) -> ChannelVideosResponseDTO:
    """One page of a channel's videos; a full page means more may follow"""
    with upstream_errors("Channel videos", trace_id):
        videos = store.list_channel_videos(
            channel_id, window_start(days_ago), video_type, limit, last_video_id
        )
    return ChannelVideosResponseDTO(
        videos=[VideoSummary.model_validate(v) for v in videos],
        has_more=len(videos) == limit,
        last_video_id=videos[-1].id if videos else None,
    )


def get_channel_group(store, channel_id: str, *, trace_id: str) -> ChannelGroupResponseDTO:
    with upstream_errors("Channel group lookup", trace_id):
        members = ChannelGroupAggregator(store).get_channel_group(channel_id)
    return ChannelGroupResponseDTO(channels=[ChannelRef.model_validate(c) for c in members])


def get_group_metrics(store, primary_channel_id: str, days_ago: Optional[int],
                      video_type: Optional[str], *, trace_id: str) -> GroupMetrics:
    with upstream_errors("Group metrics", trace_id):
        metrics = ChannelGroupAggregator(store).group_metrics(primary_channel_id, days_ago, video_type)

    logger.info("Group metrics served", extra={
        "trace_id": trace_id,
        "primary_channel_id": primary_channel_id,
        "days_ago": days_ago
    })
    return metrics


def add_to_group(store, cache: MemoryCache, request: GroupChangeRequestDTO, *,
                 trace_id: str) -> GroupChangeResponseDTO:
    with upstream_errors("Adding secondary channel", trace_id):
        add_secondary_channel(store, request.primary_channel_id,
                              request.secondary_channel_id, request.group_name)
        members = ChannelGroupAggregator(store).get_channel_group(request.primary_channel_id)

    cache.invalidate_after_update(request.primary_channel_id)
    cache.invalidate_after_update(request.secondary_channel_id)

    logger.info("Group updated", extra={
        "trace_id": trace_id,
        "primary_channel_id": request.primary_channel_id,
        "channel_id": request.secondary_channel_id
    })
    return GroupChangeResponseDTO(
        message="Secondary channel added",
        channels=[ChannelRef.model_validate(c) for c in members],
    )


def remove_from_group(store, cache: MemoryCache, request: GroupChangeRequestDTO, *,
                      trace_id: str) -> GroupChangeResponseDTO:
    with upstream_errors("Removing secondary channel", trace_id):
        remove_secondary_channel(store, request.primary_channel_id, request.secondary_channel_id)
        members = ChannelGroupAggregator(store).get_channel_group(request.primary_channel_id)

    cache.invalidate_after_update(request.primary_channel_id)
    cache.invalidate_after_update(request.secondary_channel_id)

    logger.info("Group updated", extra={
        "trace_id": trace_id,
        "primary_channel_id": request.primary_channel_id,
        "channel_id": request.secondary_channel_id
    })
    return GroupChangeResponseDTO(
        message="Secondary channel removed",
        channels=[ChannelRef.model_validate(c) for c in members],
    )


def reconcile_groups(store, cache: MemoryCache, *, trace_id: str) -> ReconcileResponseDTO:
    with upstream_errors("Group reconciliation", trace_id):
        repairs = reconcile_channel_groups(store)

    if repairs:
        cache.invalidate_after_update()
    logger.info("Group reconciliation finished", extra={
        "trace_id": trace_id,
        "repairs": len(repairs)
    })
    return ReconcileResponseDTO(repairs=repairs)


def add_channel(collector: ChannelCollector, cache: MemoryCache, text: str,
                category: Optional[str], *, trace_id: str) -> AddChannelResponseDTO:
    with upstream_errors("Adding channel", trace_id):
        channel = collector.add_channel(text, category)
    if channel is None:
        raise ChannelNotFoundError(text)

    cache.invalidate_after_update(channel.id)
    return AddChannelResponseDTO(channel=channel)


def refresh_channels(collector: ChannelCollector, cache: MemoryCache, channel_id: Optional[str], *,
                     trace_id: str) -> RefreshResponseDTO:
    with upstream_errors("Channel refresh", trace_id):
        results = collector.refresh_channels(channel_id)

    cache.invalidate_after_update(channel_id)
    return RefreshResponseDTO(results=results)
