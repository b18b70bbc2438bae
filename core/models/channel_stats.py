from sqlalchemy import Column, String, Integer, BIGINT, ForeignKey, Index
from sqlalchemy.orm import relationship
from core.db import Base, UTCDateTime, utcnow


class ChannelStatsSnapshot(Base):
    """Per-refresh channel statistics for time-series charts"""
    __tablename__ = "channel_stats"

    id = Column(BIGINT().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    channel_id = Column(String, ForeignKey("channels.id"), nullable=False,
                        comment="Reference to channel")
    captured_at = Column(UTCDateTime, nullable=False, default=utcnow,
                         comment="Snapshot capture time (UTC)")
    subscriber_count = Column(BIGINT, nullable=False, default=0)
    video_count = Column(BIGINT, nullable=False, default=0)
    view_count = Column(BIGINT, nullable=False, default=0)
    total_likes = Column(BIGINT, nullable=False, default=0, comment="Likes over the refresh window")
    total_comments = Column(BIGINT, nullable=False, default=0, comment="Comments over the refresh window")
    videos_last_30_days = Column(BIGINT, nullable=False, default=0)
    views_last_30_days = Column(BIGINT, nullable=False, default=0)

    channel = relationship("Channel", back_populates="stats_snapshots")

    __table_args__ = (
        Index('idx_channel_stats_channel_captured', 'channel_id', 'captured_at'),
    )
