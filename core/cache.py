"""In-memory TTL cache and a read-through wrapper for the record store.

Tracked data only changes when a refresh job runs (every few hours), so
repeated dashboard reads can be answered from memory. Writes go straight to
the wrapped store and invalidate the affected key prefixes.
"""
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.store import VideoRecordStore

logger = logging.getLogger(__name__)


class CacheSettings(BaseSettings):
    """Cache configuration from environment"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    cache_enabled: bool = True
    cache_ttl_seconds: float = 12 * 60 * 60


class MemoryCache:
    """Process-wide key/value cache with per-entry TTL"""

    def __init__(self, default_ttl: float = 12 * 60 * 60, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, tuple] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at, ttl = entry
        age = self._clock() - stored_at
        if age > ttl:
            del self._entries[key]
            return None

        logger.debug("Cache hit", extra={"cache_key": key, "age_s": round(age)})
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        # Keys that are never read again would otherwise live until process exit
        self.cleanup()
        self._entries[key] = (value, self._clock(), ttl)
        logger.debug("Cache set", extra={"cache_key": key, "ttl_s": ttl})

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def delete_by_prefix(self, prefix: str) -> int:
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug(f"Cache invalidated {len(keys)} entries", extra={"cache_prefix": prefix})
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Drop expired entries"""
        now = self._clock()
        expired = [key for key, (_, stored_at, ttl) in self._entries.items() if now - stored_at > ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        return {"size": len(self._entries), "keys": list(self._entries)}

    def invalidate_after_update(self, channel_id: Optional[str] = None) -> None:
        """Drop cached reads touched by a refresh or a group change"""
        if channel_id:
            self.delete_by_prefix(f"channel_{channel_id}")
            self.delete_by_prefix(f"stats_{channel_id}")
            # Channel lists and video windows embed this channel too
            self.delete_by_prefix("channels_")
            self.delete_by_prefix("primary_channels")
            self.delete_by_prefix("videos_")
        else:
            for prefix in ("channel_", "channels_", "primary_channels", "videos_", "stats_"):
                self.delete_by_prefix(prefix)


def _since_key(since: Optional[datetime]) -> str:
    """Window start truncated to the minute.

    Trailing windows are computed from the current time, so an exact key would
    differ on every request and never be hit.
    """
    if since is None:
        return "all"
    return since.replace(second=0, microsecond=0).isoformat()


class CachedRecordStore:
    """Read-through cache in front of a VideoRecordStore.

    Only reads are memoised. Writes and transactions are delegated to the
    wrapped store; mutating callers should use the wrapped store directly and
    call `cache.invalidate_after_update` afterwards.
    """

    def __init__(self, store: VideoRecordStore, cache: MemoryCache):
        self.store = store
        self.cache = cache

    @property
    def batch_limit(self) -> int:
        return self.store.batch_limit

    def _cached(self, key: str, load: Callable[[], Any]) -> Any:
        value = self.cache.get(key)
        if value is None:
            value = load()
            if value is not None:
                self.cache.set(key, value)
        return value

    def list_channels(self, category: Optional[str] = None) -> List[Any]:
        return self._cached(f"channels_{category or 'all'}",
                            lambda: self.store.list_channels(category))

    def get_channel(self, channel_id: str) -> Optional[Any]:
        # Misses are not cached so a newly added channel is visible at once
        return self._cached(f"channel_{channel_id}",
                            lambda: self.store.get_channel(channel_id))

    def list_primary_channels(self) -> List[Any]:
        return self._cached("primary_channels", self.store.list_primary_channels)

    def list_videos_since(self, since: Optional[datetime] = None,
                          video_type: Optional[str] = None) -> List[Any]:
        return self._cached(f"videos_since_{_since_key(since)}_{video_type or 'all'}",
                            lambda: self.store.list_videos_since(since, video_type))

    def list_videos_for_channel_ids(self, channel_ids: Sequence[str],
                                    since: Optional[datetime] = None,
                                    video_type: Optional[str] = None) -> List[Any]:
        key = f"videos_ids_{','.join(sorted(channel_ids))}_{_since_key(since)}_{video_type or 'all'}"
        return self._cached(key, lambda: self.store.list_videos_for_channel_ids(channel_ids, since, video_type))

    def list_channel_videos(self, channel_id: str, since: Optional[datetime] = None,
                            video_type: Optional[str] = None, limit: int = 5,
                            after_video_id: Optional[str] = None) -> List[Any]:
        key = f"videos_channel_{channel_id}_{_since_key(since)}_{video_type or 'all'}_{limit}_{after_video_id or ''}"
        return self._cached(key, lambda: self.store.list_channel_videos(
            channel_id, since, video_type, limit, after_video_id))

    def list_channel_stats(self, channel_id: str, limit: int = 30) -> List[Any]:
        return self._cached(f"stats_{channel_id}_{limit}",
                            lambda: self.store.list_channel_stats(channel_id, limit))
