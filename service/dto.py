"""Data Transfer Objects for service layer"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from analysis.schemas import ChannelRef, GroupMetrics, GroupRepair, PeriodChannelMetrics, VideoSummary, ViralVideo
from collection.clients.youtube import YouTubeChannel
from collection.jobs.collector_channels import RefreshResult


class ViralResponseDTO(BaseModel):
    """Viral videos, highest z-score first"""
    videos: List[ViralVideo] = Field(default_factory=list)
    total: int = 0
    # True when the detection pass failed and `videos` is empty because of it
    detection_failed: bool = False


class PeriodRankingResponseDTO(BaseModel):
    ranking: List[PeriodChannelMetrics]
    period: int


class GroupRankingResponseDTO(BaseModel):
    success: bool = True
    ranking: List[GroupMetrics]


class ChannelListResponseDTO(BaseModel):
    channels: List[ChannelRef]


class ChannelGroupResponseDTO(BaseModel):
    success: bool = True
    channels: List[ChannelRef]


class GroupChangeRequestDTO(BaseModel):
    primary_channel_id: str = Field(min_length=1)
    secondary_channel_id: str = Field(min_length=1)
    group_name: Optional[str] = None


class GroupChangeResponseDTO(BaseModel):
    success: bool = True
    message: str
    channels: List[ChannelRef] = Field(default_factory=list)


class ReconcileResponseDTO(BaseModel):
    success: bool = True
    repairs: List[GroupRepair]


class AddChannelRequestDTO(BaseModel):
    """Channel id, @handle or channel URL"""
    channel_id: str = Field(min_length=1)
    category: Optional[str] = None


class AddChannelResponseDTO(BaseModel):
    success: bool = True
    channel: YouTubeChannel


class RefreshRequestDTO(BaseModel):
    channel_id: Optional[str] = None


class RefreshResponseDTO(BaseModel):
    success: bool = True
    results: List[RefreshResult]


class ChannelStatsDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    channel_id: str
    captured_at: datetime
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    total_likes: int = 0
    total_comments: int = 0
    videos_last_30_days: int = 0
    views_last_30_days: int = 0


class ChannelStatsResponseDTO(BaseModel):
    stats: List[ChannelStatsDTO]


class ChannelVideosResponseDTO(BaseModel):
    videos: List[VideoSummary]
    has_more: bool
    last_video_id: Optional[str] = None


class HealthResponseDTO(BaseModel):
    """Service layer DTO for health check responses"""
    ok: bool = True
    timestamp: Optional[str] = None
    version: Optional[str] = None
    database: Optional[str] = None
    cache_entries: Optional[int] = None
