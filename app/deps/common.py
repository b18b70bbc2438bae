"""Common dependencies for FastAPI dependency injection"""
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import Session

from core.cache import CacheSettings, CachedRecordStore, MemoryCache
from core.db import SessionLocal
from core.store import VideoRecordStore
from collection.clients.youtube import YouTubeClient
from collection.jobs.collector_channels import ChannelCollector


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Unset means any bearer token is accepted (local development only)
    admin_token: Optional[str] = None


def get_db_session() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        Session: SQLAlchemy database session
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_trace_id() -> str:
    """
    Generate unique trace ID for request tracking.

    Returns:
        str: Unique trace ID
    """
    return f"api_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


@lru_cache
def get_cache_settings() -> CacheSettings:
    return CacheSettings()


@lru_cache
def get_cache() -> MemoryCache:
    """Process-wide cache shared by all requests"""
    return MemoryCache(default_ttl=get_cache_settings().cache_ttl_seconds)


@lru_cache
def get_auth_settings() -> AuthSettings:
    return AuthSettings()


def get_store(session: Session = Depends(get_db_session)) -> VideoRecordStore:
    """Direct store, used for writes and anything that must see fresh rows"""
    return VideoRecordStore(session)


def get_read_store(
    store: VideoRecordStore = Depends(get_store),
    cache: MemoryCache = Depends(get_cache),
    cache_settings: CacheSettings = Depends(get_cache_settings)
):
    """Store for dashboard reads, memoised when caching is enabled"""
    if not cache_settings.cache_enabled:
        return store
    return CachedRecordStore(store, cache)


def get_youtube_client() -> Generator[YouTubeClient, None, None]:
    with YouTubeClient() as client:
        yield client


def get_collector(
    session: Session = Depends(get_db_session),
    client: YouTubeClient = Depends(get_youtube_client)
) -> ChannelCollector:
    return ChannelCollector(session=session, client=client)


def require_admin(
    authorization: Optional[str] = Header(default=None),
    settings: AuthSettings = Depends(get_auth_settings)
) -> None:
    """Reject requests without an admin bearer token"""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail={
            "error": {"code": "UNAUTHORIZED", "message": "Admin access required"}
        })
    if settings.admin_token and token != settings.admin_token:
        raise HTTPException(status_code=401, detail={
            "error": {"code": "UNAUTHORIZED", "message": "Admin access required"}
        })
