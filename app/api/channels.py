import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from analysis.schemas import GroupMetrics
from app.api.errors import service_errors
from app.deps.common import (
    get_cache,
    get_collector,
    get_read_store,
    get_store,
    get_trace_id,
    require_admin,
)
from collection.jobs.collector_channels import ChannelCollector
from core.cache import MemoryCache
from core.store import VideoRecordStore
from service import channel_service
from service.dto import (
    AddChannelRequestDTO,
    AddChannelResponseDTO,
    ChannelGroupResponseDTO,
    ChannelListResponseDTO,
    ChannelStatsResponseDTO,
    ChannelVideosResponseDTO,
    GroupChangeRequestDTO,
    GroupChangeResponseDTO,
    ReconcileResponseDTO,
    RefreshRequestDTO,
    RefreshResponseDTO,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/channels", tags=["channels"])


@router.get("", response_model=ChannelListResponseDTO)
def list_channels(
    category: str = Query("all"),
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> ChannelListResponseDTO:
    with service_errors(trace_id):
        return channel_service.list_channels(store, category, trace_id=trace_id)


@router.post("", response_model=AddChannelResponseDTO, dependencies=[Depends(require_admin)])
def add_channel(
    request: AddChannelRequestDTO,
    collector: ChannelCollector = Depends(get_collector),
    cache: MemoryCache = Depends(get_cache),
    trace_id: str = Depends(get_trace_id)
) -> AddChannelResponseDTO:
    """Track a channel given its id, @handle or URL"""
    with service_errors(trace_id):
        return channel_service.add_channel(collector, cache, request.channel_id, request.category,
                                           trace_id=trace_id)


@router.post("/refresh", response_model=RefreshResponseDTO, dependencies=[Depends(require_admin)])
def refresh_channels(
    request: RefreshRequestDTO,
    collector: ChannelCollector = Depends(get_collector),
    cache: MemoryCache = Depends(get_cache),
    trace_id: str = Depends(get_trace_id)
) -> RefreshResponseDTO:
    with service_errors(trace_id):
        return channel_service.refresh_channels(collector, cache, request.channel_id, trace_id=trace_id)


@router.post("/group/add", response_model=GroupChangeResponseDTO, dependencies=[Depends(require_admin)])
def add_secondary(
    request: GroupChangeRequestDTO,
    store: VideoRecordStore = Depends(get_store),
    cache: MemoryCache = Depends(get_cache),
    trace_id: str = Depends(get_trace_id)
) -> GroupChangeResponseDTO:
    with service_errors(trace_id):
        return channel_service.add_to_group(store, cache, request, trace_id=trace_id)


@router.post("/group/remove", response_model=GroupChangeResponseDTO, dependencies=[Depends(require_admin)])
def remove_secondary(
    request: GroupChangeRequestDTO,
    store: VideoRecordStore = Depends(get_store),
    cache: MemoryCache = Depends(get_cache),
    trace_id: str = Depends(get_trace_id)
) -> GroupChangeResponseDTO:
    with service_errors(trace_id):
        return channel_service.remove_from_group(store, cache, request, trace_id=trace_id)


@router.post("/group/reconcile", response_model=ReconcileResponseDTO, dependencies=[Depends(require_admin)])
def reconcile_groups(
    store: VideoRecordStore = Depends(get_store),
    cache: MemoryCache = Depends(get_cache),
    trace_id: str = Depends(get_trace_id)
) -> ReconcileResponseDTO:
    with service_errors(trace_id):
        return channel_service.reconcile_groups(store, cache, trace_id=trace_id)


@router.get("/{channel_id}/stats", response_model=ChannelStatsResponseDTO)
def channel_stats(
    channel_id: str,
    limit: int = Query(30, ge=1, le=365),
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> ChannelStatsResponseDTO:
    with service_errors(trace_id):
        return channel_service.get_channel_stats(store, channel_id, limit, trace_id=trace_id)


@router.get("/{channel_id}/videos", response_model=ChannelVideosResponseDTO)
def channel_videos(
    channel_id: str,
    days_ago: int = Query(30, ge=0),
    video_type: Optional[Literal["normal", "shorts"]] = Query(None),
    limit: int = Query(5, ge=1, le=50),
    last_video_id: Optional[str] = Query(None),
    store: VideoRecordStore = Depends(get_store),
    trace_id: str = Depends(get_trace_id)
) -> ChannelVideosResponseDTO:
    with service_errors(trace_id):
        return channel_service.list_channel_videos(store, channel_id, days_ago, video_type, limit,
                                                   last_video_id, trace_id=trace_id)


@router.get("/{channel_id}/group", response_model=ChannelGroupResponseDTO)
def channel_group(
    channel_id: str,
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> ChannelGroupResponseDTO:
    with service_errors(trace_id):
        return channel_service.get_channel_group(store, channel_id, trace_id=trace_id)


@router.get("/{channel_id}/group/metrics", response_model=GroupMetrics)
def channel_group_metrics(
    channel_id: str,
    period: Optional[int] = Query(None, ge=0, description="Trailing window in days; lifetime when absent"),
    video_type: Optional[Literal["normal", "shorts"]] = Query(None, alias="type"),
    store=Depends(get_read_store),
    trace_id: str = Depends(get_trace_id)
) -> GroupMetrics:
    with service_errors(trace_id):
        return channel_service.get_group_metrics(store, channel_id, period, video_type, trace_id=trace_id)
