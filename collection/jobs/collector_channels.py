#!/usr/bin/env python3
import sys
import time
import logging
import argparse
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Add project root to path
sys.path.insert(0, ".")

from analysis.windows import window_start
from core.db import SessionLocal
from core.logging import setup_json_logging
from core.store import VideoRecordStore
from collection.clients.youtube import YouTubeClient, YouTubeChannel

logger = logging.getLogger(__name__)


class CollectorSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    request_delay_seconds: float = 1.0
    refresh_days: int = 30
    max_videos_per_channel: int = 200


class RefreshResult(BaseModel):
    id: str
    success: bool
    videos_updated: int = 0
    error: Optional[str] = None


class ChannelCollector:
    def __init__(self, session=None, client: Optional[YouTubeClient] = None,
                 settings: Optional[CollectorSettings] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self._owns_session = session is None
        self.db = session if session is not None else SessionLocal()
        self.store = VideoRecordStore(self.db)
        self._owns_client = client is None
        self.client = client if client is not None else YouTubeClient()
        self.settings = settings or CollectorSettings()
        self._sleep = sleep

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owns_client:
            self.client.client.close()
        if self._owns_session:
            self.db.close()

    def refresh_channels(self, channel_id: Optional[str] = None) -> List[RefreshResult]:
        """Refresh one tracked channel, or all of them, from the YouTube API"""
        trace_id = f"refresh_channels_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

        if channel_id:
            existing = self.store.get_channel(channel_id)
            targets = [(channel_id, existing.category if existing else "general")]
        else:
            targets = [(channel.id, channel.category) for channel in self.store.list_channels()]

        logger.info("Starting channel refresh", extra={
            "trace_id": trace_id,
            "job": "collector_channels",
            "channels": len(targets)
        })

        results = []
        for index, (target_id, category) in enumerate(targets):
            if index > 0:
                # Stay under the API quota between channels
                self._sleep(self.settings.request_delay_seconds)
            results.append(self._refresh_channel(target_id, category, trace_id))

        failed = sum(1 for result in results if not result.success)
        logger.info("Channel refresh completed", extra={
            "trace_id": trace_id,
            "job": "collector_channels",
            "channels": len(results),
            "errors": failed
        })
        return results

    def add_channel(self, text: str, category: Optional[str] = None) -> Optional[YouTubeChannel]:
        """Resolve a channel id, @handle or URL and start tracking it"""
        details = self.client.get_channel_by_input(text)
        if details is None:
            return None

        with self.store.transaction():
            self.store.save_channel({**details.model_dump(), "category": category or "general"})

        logger.info("Channel added", extra={"channel_id": details.id})
        return details

    def _refresh_channel(self, channel_id: str, category: str, trace_id: str) -> RefreshResult:
        try:
            details = self.client.get_channel_details(channel_id)
            if details is None:
                return RefreshResult(id=channel_id, success=False, error="Channel not found")

            since = window_start(self.settings.refresh_days)
            videos = self.client.get_channel_videos(
                channel_id, self.settings.max_videos_per_channel, published_after=since
            )

            with self.store.transaction():
                self.store.save_channel({**details.model_dump(), "category": category})
                for video in videos:
                    self.store.save_video(video.model_dump())

                recent = self.store.list_videos_for_channel_ids([channel_id], since)
                self.store.save_channel_stats({
                    "channel_id": channel_id,
                    "captured_at": datetime.now(timezone.utc),
                    "subscriber_count": details.subscriber_count,
                    "video_count": details.video_count,
                    "view_count": details.view_count,
                    "total_likes": sum(v.like_count or 0 for v in recent),
                    "total_comments": sum(v.comment_count or 0 for v in recent),
                    "videos_last_30_days": len(recent),
                    "views_last_30_days": sum(v.view_count or 0 for v in recent),
                })

            return RefreshResult(id=channel_id, success=True, videos_updated=len(videos))

        except Exception as e:
            logger.error(f"Failed to refresh channel: {e}", extra={
                "trace_id": trace_id,
                "channel_id": channel_id
            })
            return RefreshResult(id=channel_id, success=False, error=str(e))


def main():
    parser = argparse.ArgumentParser(description="Refresh tracked channels from YouTube")
    parser.add_argument("--channel-id", help="Refresh a single channel (default: all)")
    parser.add_argument("--add", help="Track a new channel by id, @handle or URL")
    parser.add_argument("--category", default="general", help="Category for --add (default: general)")

    args = parser.parse_args()

    setup_json_logging()

    with ChannelCollector() as collector:
        if args.add:
            if collector.add_channel(args.add, args.category) is None:
                raise SystemExit(f"Channel not found: {args.add}")
            return
        collector.refresh_channels(args.channel_id)


if __name__ == "__main__":
    main()
