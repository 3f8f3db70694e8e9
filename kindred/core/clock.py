"""Wall-clock helpers for epoch-millisecond timestamps.

Every engine function takes its reference time and zone explicitly.
A ``tz`` of None means the host's local zone.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta, tzinfo

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_datetime(ms: int, tz: tzinfo | None = None) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=tz)


def to_ms(dt: datetime) -> int:
    return int(round(dt.timestamp() * 1000))


def local_date(ms: int, tz: tzinfo | None = None) -> date:
    """Calendar day on which ``ms`` falls in the given zone."""
    return to_datetime(ms, tz).date()


def day_key(ms: int, tz: tzinfo | None = None) -> str:
    """Format a timestamp as a ``YYYY-MM-DD`` calendar key."""
    return local_date(ms, tz).isoformat()


def start_of_day_ms(day: date, tz: tzinfo | None = None) -> int:
    return to_ms(datetime(day.year, day.month, day.day, tzinfo=tz))


def day_bounds_ms(day: date, tz: tzinfo | None = None) -> tuple[int, int]:
    """Return the inclusive ``[start, end]`` millisecond range of a local day."""
    start = start_of_day_ms(day, tz)
    end = start_of_day_ms(day + timedelta(days=1), tz) - 1
    return start, end
