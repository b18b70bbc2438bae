"""SQLAlchemy-backed record store for channels, videos and channel stats"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from core.models import Channel, Video, ChannelStatsSnapshot

logger = logging.getLogger(__name__)

# Membership (IN) queries are capped per call, mirroring document stores that
# only accept a handful of values in an `in` filter.
IN_QUERY_BATCH_LIMIT = 10


class VideoRecordStore:
    """Read/write access to the tracked channel and video records"""

    def __init__(self, session: Session, batch_limit: int = IN_QUERY_BATCH_LIMIT):
        self.session = session
        self.batch_limit = batch_limit

    @contextmanager
    def transaction(self) -> Iterator["VideoRecordStore"]:
        """Commit everything written inside the block, or roll it all back"""
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # Channel reads

    def list_channels(self, category: Optional[str] = None) -> List[Channel]:
        stmt = select(Channel).order_by(Channel.view_count.desc(), Channel.id)
        if category and category != "all":
            stmt = stmt.where(Channel.category == category)
        return list(self.session.scalars(stmt))

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        return self.session.get(Channel, channel_id)

    def list_primary_channels(self) -> List[Channel]:
        """Channels that are not secondaries of another channel"""
        stmt = (
            select(Channel)
            .where(Channel.parent_channel_id.is_(None))
            .order_by(Channel.view_count.desc(), Channel.id)
        )
        return list(self.session.scalars(stmt))

    # Video reads

    def list_videos_since(self, since: Optional[datetime] = None,
                          video_type: Optional[str] = None) -> List[Video]:
        """All videos published at or after `since` (full history when None)"""
        stmt = select(Video)
        if since is not None:
            stmt = stmt.where(Video.published_at >= since)
        if video_type:
            stmt = stmt.where(Video.video_type == video_type)
        stmt = stmt.order_by(Video.published_at.desc(), Video.id)
        return list(self.session.scalars(stmt))

    def list_videos_for_channel_ids(self, channel_ids: Sequence[str],
                                    since: Optional[datetime] = None,
                                    video_type: Optional[str] = None) -> List[Video]:
        """Videos owned by any of `channel_ids`; callers chunk to `batch_limit`"""
        if len(channel_ids) > self.batch_limit:
            raise ValueError(
                f"Membership query accepts at most {self.batch_limit} ids, got {len(channel_ids)}"
            )
        if not channel_ids:
            return []

        stmt = select(Video).where(Video.channel_id.in_(list(channel_ids)))
        if since is not None:
            stmt = stmt.where(Video.published_at >= since)
        if video_type:
            stmt = stmt.where(Video.video_type == video_type)
        stmt = stmt.order_by(Video.published_at.desc(), Video.id)
        return list(self.session.scalars(stmt))

    def list_channel_videos(self, channel_id: str, since: Optional[datetime] = None,
                            video_type: Optional[str] = None, limit: int = 5,
                            after_video_id: Optional[str] = None) -> List[Video]:
        """One page of a channel's videos, newest first then most viewed.

        `after_video_id` resumes right after that video in the same ordering;
        an unknown id restarts from the first page.
        """
        stmt = select(Video).where(Video.channel_id == channel_id)
        if since is not None:
            stmt = stmt.where(Video.published_at >= since)
        if video_type:
            stmt = stmt.where(Video.video_type == video_type)

        if after_video_id:
            anchor = self.session.get(Video, after_video_id)
            if anchor is not None:
                stmt = stmt.where(or_(
                    Video.published_at < anchor.published_at,
                    and_(Video.published_at == anchor.published_at,
                         Video.view_count < anchor.view_count),
                    and_(Video.published_at == anchor.published_at,
                         Video.view_count == anchor.view_count,
                         Video.id > anchor.id),
                ))

        stmt = stmt.order_by(Video.published_at.desc(), Video.view_count.desc(), Video.id).limit(limit)
        return list(self.session.scalars(stmt))

    # Writes

    def update_channel(self, channel_id: str, fields: Dict[str, Any]) -> Optional[Channel]:
        """Apply a partial update; a None value removes the field"""
        channel = self.get_channel(channel_id)
        if channel is None:
            return None
        for name, value in fields.items():
            if not hasattr(Channel, name):
                raise AttributeError(f"Channel has no field {name!r}")
            setattr(channel, name, value)
        self.session.flush()
        return channel

    def save_channel(self, data: Dict[str, Any]) -> Channel:
        """Upsert channel details; fields absent from `data` are preserved"""
        channel = self.session.merge(Channel(**data))
        self.session.flush()
        return channel

    def save_video(self, data: Dict[str, Any]) -> Video:
        video = self.session.merge(Video(**data))
        self.session.flush()
        return video

    def save_channel_stats(self, data: Dict[str, Any]) -> ChannelStatsSnapshot:
        snapshot = ChannelStatsSnapshot(**data)
        self.session.add(snapshot)
        self.session.flush()
        return snapshot

    def list_channel_stats(self, channel_id: str, limit: int = 30) -> List[ChannelStatsSnapshot]:
        stmt = (
            select(ChannelStatsSnapshot)
            .where(ChannelStatsSnapshot.channel_id == channel_id)
            .order_by(ChannelStatsSnapshot.captured_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))
