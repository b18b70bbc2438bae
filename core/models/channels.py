from sqlalchemy import Column, String, Text, BIGINT, JSON
from sqlalchemy.orm import relationship
from core.db import Base, UTCDateTime, utcnow


class Channel(Base):
    """Tracked YouTube channel with lifetime counters and grouping links"""
    __tablename__ = "channels"

    id = Column(String, primary_key=True, comment="YouTube channel ID")
    title = Column(Text, comment="Channel title")
    description = Column(Text, default="", comment="Channel description")
    thumbnail_url = Column(Text, default="", comment="Channel avatar URL")
    custom_url = Column(Text, comment="Channel custom URL / handle")
    category = Column(Text, nullable=False, default="general", comment="Free-text category tag")
    subscriber_count = Column(BIGINT, nullable=False, default=0, comment="Lifetime subscribers")
    video_count = Column(BIGINT, nullable=False, default=0, comment="Lifetime uploads")
    view_count = Column(BIGINT, nullable=False, default=0, comment="Lifetime views")
    published_at = Column(UTCDateTime, comment="Channel creation time (UTC)")

    # Grouping: only secondaries carry parent_channel_id, only primaries carry secondary_channel_ids
    parent_channel_id = Column(String, index=True, comment="Primary channel of a secondary")
    secondary_channel_ids = Column(JSON, comment="Ordered member ids of a primary")
    group_name = Column(Text, comment="Shared group display label")

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    videos = relationship("Video", back_populates="channel")
    stats_snapshots = relationship("ChannelStatsSnapshot", back_populates="channel")

    @property
    def is_secondary(self) -> bool:
        return self.parent_channel_id is not None
