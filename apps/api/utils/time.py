"""UTC time helpers (timezone-aware calculation, naive storage)."""
from __future__ import annotations

from datetime import datetime, timezone, timedelta, date


def utc_now() -> datetime:
    """Return a UTC timestamp without tzinfo for legacy DB columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    """Return today's date in UTC (naive)."""
    return utc_now().date()


def local_today(offset_hours: int = 8, now: datetime | None = None) -> date:
    """Return the calendar date at a fixed UTC offset (Philippine time by default)."""
    base = now or utc_now()
    return (base + timedelta(hours=offset_hours)).date()
