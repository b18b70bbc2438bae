"""Core database models"""
from .channels import Channel
from .videos import Video
from .channel_stats import ChannelStatsSnapshot

__all__ = ["Channel", "Video", "ChannelStatsSnapshot"]
