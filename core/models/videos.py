from sqlalchemy import Column, String, Text, BIGINT, ForeignKey, Index
from sqlalchemy.orm import relationship
from core.db import Base, UTCDateTime, utcnow


class Video(Base):
    """Video metadata and latest metrics"""
    __tablename__ = "videos"

    id = Column(String, primary_key=True, comment="YouTube video ID")
    channel_id = Column(String, ForeignKey("channels.id"), nullable=False, comment="Owning channel")
    title = Column(Text, comment="Video title")
    description = Column(Text, default="", comment="Video description")
    thumbnail_url = Column(Text, default="", comment="Thumbnail URL")
    published_at = Column(UTCDateTime, nullable=False, comment="Video publication time (UTC)")
    view_count = Column(BIGINT, nullable=False, default=0, comment="View count at last refresh")
    like_count = Column(BIGINT, nullable=False, default=0, comment="Like count at last refresh")
    comment_count = Column(BIGINT, nullable=False, default=0, comment="Comment count at last refresh")
    duration = Column(Text, default="", comment="ISO-8601 duration")
    video_type = Column(String, nullable=False, default="normal", comment="normal | shorts")

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    channel = relationship("Channel", back_populates="videos")

    __table_args__ = (
        Index('idx_videos_channel_published', 'channel_id', 'published_at'),
        Index('idx_videos_published', 'published_at'),
    )
