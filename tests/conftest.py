"""Common test fixtures for all test modules"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.db import Base
from core.models import Channel, Video
from core.store import VideoRecordStore


@pytest.fixture
def engine():
    """In-memory SQLite database with the full schema"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(session):
    return VideoRecordStore(session)


@pytest.fixture
def add_channel(session):
    """Factory inserting a channel row"""
    def _add(channel_id, title=None, subscribers=0, views=0, videos=0, **fields):
        channel = Channel(
            id=channel_id,
            title=title if title is not None else f"Channel {channel_id}",
            subscriber_count=subscribers,
            view_count=views,
            video_count=videos,
            **fields
        )
        session.add(channel)
        session.commit()
        return channel
    return _add


@pytest.fixture
def add_video(session):
    """Factory inserting a video published `days_old` days before `now`"""
    counter = {"n": 0}

    def _add(channel_id, views, days_old=1.0, likes=0, comments=0, video_type="normal",
             video_id=None, now=None):
        counter["n"] += 1
        now = now or datetime.now(timezone.utc)
        video = Video(
            id=video_id or f"{channel_id}_v{counter['n']}",
            channel_id=channel_id,
            title=f"Video {counter['n']}",
            published_at=now - timedelta(days=days_old),
            view_count=views,
            like_count=likes,
            comment_count=comments,
            video_type=video_type
        )
        session.add(video)
        session.commit()
        return video
    return _add


@pytest.fixture
def sample_viral_channel(add_channel, add_video):
    """Channel X from the reference scenario: four 100-view videos and one 1000-view hit"""
    add_channel("X", title="Channel X")
    for views in (100, 100, 100, 100):
        add_video("X", views, days_old=2)
    return add_video("X", 1000, days_old=2, video_id="X_hit")
