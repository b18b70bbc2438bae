"""Derived value objects produced by the analysis layer"""
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

VideoType = Literal["normal", "shorts"]


class ViralLevel(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"


class ChannelRef(BaseModel):
    """Identity and lifetime counters of a channel"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    category: str = "general"
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    parent_channel_id: Optional[str] = None
    secondary_channel_ids: Optional[List[str]] = None
    group_name: Optional[str] = None


class VideoSummary(BaseModel):
    """Lightweight projection of a video for ranking tables"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    published_at: datetime
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    video_type: str = "normal"


class ViralVideo(VideoSummary):
    """A video whose views are a statistical outlier for its channel"""
    channel_id: str
    channel_title: Optional[str] = None
    channel_average: int
    z_score: float
    multiplier: float
    viral_level: ViralLevel
    percentile: float = Field(ge=0, le=100)


class PeriodChannelMetrics(ChannelRef):
    """A channel's totals over a trailing day window"""
    period_views: int = 0
    period_likes: int = 0
    period_comments: int = 0
    period_videos: int = 0
    engagement_rate: float = 0.0
    videos: List[VideoSummary] = Field(default_factory=list)


class GroupMetrics(BaseModel):
    """Summed metrics of a primary channel and its secondaries"""
    primary_channel_id: str
    group_name: str
    channels: List[ChannelRef]
    days_ago: Optional[int] = None
    total_subscribers: int = 0
    total_views: int = 0
    total_videos: int = 0
    total_likes: int = 0
    total_comments: int = 0

    @computed_field
    @property
    def engagement_rate(self) -> float:
        return engagement_rate(self.total_likes, self.total_comments, self.total_views)

    @computed_field
    @property
    def average_views_per_video(self) -> float:
        return self.total_views / self.total_videos if self.total_videos > 0 else 0.0


class GroupRepair(BaseModel):
    """One fix applied by the group reconciliation pass"""
    channel_id: str
    action: Literal["cleared_parent", "cleared_members", "dropped_member", "set_parent"]
    detail: str


def engagement_rate(likes: int, comments: int, views: int) -> float:
    """(likes + comments) / views as a percentage, 0 when there are no views"""
    if views <= 0:
        return 0.0
    return (likes + comments) / views * 100
