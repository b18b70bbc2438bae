"""Primary/secondary channel groups: aggregation and membership changes.

A primary channel lists its secondaries in `secondary_channel_ids`; each
secondary points back through `parent_channel_id`. The primary's list is the
source of truth for membership. Group changes touch both rows inside one
transaction, and `reconcile_channel_groups` repairs links left one-sided by
older data or manual edits.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from analysis.schemas import ChannelRef, GroupMetrics, GroupRepair
from analysis.windows import window_start
from core.errors import ChannelNotFoundError, InvalidGroupError

logger = logging.getLogger(__name__)

FALLBACK_GROUP_NAME = "Unnamed group"


def chunked(items: Sequence[str], size: int) -> Iterator[List[str]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def resolve_group_name(primary) -> str:
    return primary.group_name or primary.title or FALLBACK_GROUP_NAME


class ChannelGroupAggregator:
    def __init__(self, store):
        self.store = store

    def resolve_group(self, primary_channel_id: str) -> Tuple[object, List]:
        """The primary channel and every member, primary first.

        Member ids that no longer resolve are skipped.
        """
        primary = self.store.get_channel(primary_channel_id)
        if primary is None:
            raise ChannelNotFoundError(primary_channel_id)

        members = [primary]
        for secondary_id in primary.secondary_channel_ids or []:
            secondary = self.store.get_channel(secondary_id)
            if secondary is None:
                logger.warning("Dropping unresolved secondary channel", extra={
                    "primary_channel_id": primary_channel_id,
                    "channel_id": secondary_id
                })
                continue
            members.append(secondary)
        return primary, members

    def group_metrics(self, primary_channel_id: str, days_ago: Optional[int] = None,
                      video_type: Optional[str] = None,
                      now: Optional[datetime] = None) -> GroupMetrics:
        """Summed metrics for a primary channel and its secondaries.

        Without `days_ago` the lifetime counters stored on each channel are
        summed and no videos are read. With it, videos of all members
        published inside the window are summed; member ids are queried in
        batches no larger than the store's membership-query limit.
        Subscribers are always lifetime totals.
        """
        primary, members = self.resolve_group(primary_channel_id)

        metrics = GroupMetrics(
            primary_channel_id=primary.id,
            group_name=resolve_group_name(primary),
            channels=[ChannelRef.model_validate(channel) for channel in members],
            days_ago=days_ago,
            total_subscribers=sum(channel.subscriber_count or 0 for channel in members),
        )

        if days_ago is None:
            metrics.total_views = sum(channel.view_count or 0 for channel in members)
            metrics.total_videos = sum(channel.video_count or 0 for channel in members)
            return metrics

        since = window_start(days_ago, now)
        channel_ids = [channel.id for channel in members]
        for batch in chunked(channel_ids, self.store.batch_limit):
            for video in self.store.list_videos_for_channel_ids(batch, since, video_type):
                metrics.total_views += video.view_count or 0
                metrics.total_likes += video.like_count or 0
                metrics.total_comments += video.comment_count or 0
                metrics.total_videos += 1

        return metrics

    def rank_groups(self, days_ago: Optional[int] = None, video_type: Optional[str] = None,
                    now: Optional[datetime] = None) -> List[GroupMetrics]:
        """Group metrics for every primary channel, most viewed first"""
        # One window for the whole pass
        now = now or datetime.now(timezone.utc)
        groups = [
            self.group_metrics(channel.id, days_ago, video_type, now)
            for channel in self.store.list_primary_channels()
        ]
        groups.sort(key=lambda group: group.total_views, reverse=True)
        return groups

    def get_channel_group(self, channel_id: str) -> List:
        """All channels in the group containing `channel_id`, primary first"""
        channel = self.store.get_channel(channel_id)
        if channel is None:
            raise ChannelNotFoundError(channel_id)

        if channel.parent_channel_id:
            parent = self.store.get_channel(channel.parent_channel_id)
            if parent is not None:
                channel = parent
        _, members = self.resolve_group(channel.id)
        return members


def add_secondary_channel(store, primary_id: str, secondary_id: str,
                          group_name: Optional[str] = None):
    """Attach `secondary_id` to the group of `primary_id`.

    Adding a channel that is already a member only refreshes the group name.
    """
    if primary_id == secondary_id:
        raise InvalidGroupError("A channel cannot be its own secondary")

    with store.transaction():
        primary = store.get_channel(primary_id)
        if primary is None:
            raise ChannelNotFoundError(primary_id)
        secondary = store.get_channel(secondary_id)
        if secondary is None:
            raise ChannelNotFoundError(secondary_id)

        if primary.parent_channel_id:
            raise InvalidGroupError(f"Channel {primary_id} is a secondary of {primary.parent_channel_id}")
        if secondary.secondary_channel_ids:
            raise InvalidGroupError(f"Channel {secondary_id} is the primary of its own group")
        if secondary.parent_channel_id and secondary.parent_channel_id != primary_id:
            raise InvalidGroupError(
                f"Channel {secondary_id} already belongs to the group of {secondary.parent_channel_id}"
            )

        name = group_name or primary.group_name or primary.title
        members = list(primary.secondary_channel_ids or [])
        if secondary_id not in members:
            members.append(secondary_id)

        store.update_channel(primary_id, {"secondary_channel_ids": members, "group_name": name})
        # An empty member list would still mark the secondary as a primary
        store.update_channel(secondary_id, {
            "parent_channel_id": primary_id,
            "group_name": name,
            "secondary_channel_ids": None,
        })

    logger.info("Secondary channel added", extra={
        "primary_channel_id": primary_id,
        "channel_id": secondary_id
    })
    return primary


def remove_secondary_channel(store, primary_id: str, secondary_id: str):
    """Detach `secondary_id` from the group of `primary_id`; absent members are a no-op"""
    with store.transaction():
        primary = store.get_channel(primary_id)
        if primary is None:
            raise ChannelNotFoundError(primary_id)

        members = list(primary.secondary_channel_ids or [])
        if secondary_id in members:
            members.remove(secondary_id)
            store.update_channel(primary_id, {"secondary_channel_ids": members})

        secondary = store.get_channel(secondary_id)
        if secondary is not None and secondary.parent_channel_id == primary_id:
            store.update_channel(secondary_id, {"parent_channel_id": None, "group_name": None})

    logger.info("Secondary channel removed", extra={
        "primary_channel_id": primary_id,
        "channel_id": secondary_id
    })
    return primary


def reconcile_channel_groups(store) -> List[GroupRepair]:
    """Repair one-sided primary/secondary links.

    Primaries' member lists win: a listed member without a parent gets one,
    a listed member that is claimed by another primary's list is dropped, and
    unknown ids are dropped. Afterwards any secondary whose parent does not
    list it has its link cleared.
    """
    repairs: List[GroupRepair] = []

    with store.transaction():
        channels: Dict[str, object] = {channel.id: channel for channel in store.list_channels()}
        claimed: Set[str] = set()

        primaries = [c for c in channels.values() if not c.parent_channel_id and c.secondary_channel_ids]
        for primary in primaries:
            kept = []
            for member_id in primary.secondary_channel_ids:
                member = channels.get(member_id)
                owner = channels.get(member.parent_channel_id) if member and member.parent_channel_id else None
                if member is None:
                    repairs.append(GroupRepair(channel_id=member_id, action="dropped_member",
                                               detail=f"unknown channel listed by {primary.id}"))
                    continue
                if member_id in claimed or member_id in kept or (
                        owner is not None and owner.id != primary.id
                        and member_id in (owner.secondary_channel_ids or [])):
                    repairs.append(GroupRepair(channel_id=member_id, action="dropped_member",
                                               detail=f"already a member of another group, dropped from {primary.id}"))
                    continue
                if member.parent_channel_id != primary.id:
                    store.update_channel(member_id, {
                        "parent_channel_id": primary.id,
                        "group_name": resolve_group_name(primary),
                    })
                    repairs.append(GroupRepair(channel_id=member_id, action="set_parent",
                                               detail=f"parent set to {primary.id}"))
                kept.append(member_id)

            claimed.update(kept)
            if kept != list(primary.secondary_channel_ids):
                store.update_channel(primary.id, {"secondary_channel_ids": kept})

        for channel in channels.values():
            if not channel.parent_channel_id:
                continue
            parent = channels.get(channel.parent_channel_id)
            if parent is None or channel.id not in (parent.secondary_channel_ids or []):
                repairs.append(GroupRepair(channel_id=channel.id, action="cleared_parent",
                                           detail=f"not listed by {channel.parent_channel_id}"))
                store.update_channel(channel.id, {"parent_channel_id": None, "group_name": None})
            elif channel.secondary_channel_ids == []:
                repairs.append(GroupRepair(channel_id=channel.id, action="cleared_members",
                                           detail=f"secondary of {channel.parent_channel_id} carried an empty member list"))
                store.update_channel(channel.id, {"secondary_channel_ids": None})

    if repairs:
        logger.warning(f"Reconciled {len(repairs)} channel group links")
    return repairs


def group_metrics(store, primary_channel_id: str, days_ago: Optional[int] = None,
                  video_type: Optional[str] = None, now: Optional[datetime] = None) -> GroupMetrics:
    return ChannelGroupAggregator(store).group_metrics(primary_channel_id, days_ago, video_type, now)
