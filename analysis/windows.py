"""Trailing day-window helpers"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def window_start(days_ago: Optional[int], now: Optional[datetime] = None,
                 start_of_day: bool = False) -> Optional[datetime]:
    """Start of the trailing `days_ago`-day window ending at `now` (UTC).

    Returns None when `days_ago` is None, meaning "no lower bound". With
    `start_of_day` the start is truncated to midnight UTC of that day.
    """
    if days_ago is None:
        return None
    if days_ago < 0:
        raise ValueError(f"days_ago must be >= 0, got {days_ago}")

    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=days_ago)
    if start_of_day:
        start = start.replace(hour=0, minute=0, second=0, microsecond=0)
    return start
