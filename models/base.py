"""
Base utilities for database models.

Time helpers shared by the models and services. Visit timestamps are
stored as naive values in server-local time (a fixed UTC offset taken
from settings).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from core.config import get_settings


def local_timezone() -> timezone:
    """Get the fixed-offset server timezone."""
    return timezone(timedelta(hours=get_settings().TIMEZONE_OFFSET_HOURS))


def local_now() -> datetime:
    """
    Get the current server-local time as a naive datetime.

    Used as the default for every stored timestamp.
    """
    return datetime.now(local_timezone()).replace(tzinfo=None)


def local_day_bounds(moment: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Get the [start, end) range of the server-local calendar day.

    Args:
        moment: Naive local datetime inside the day (default: now)

    Returns:
        tuple: (start, end) naive datetimes
    """
    moment = moment or local_now()
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def format_local_datetime(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a stored (naive, server-local) datetime as ISO 8601 with offset.

    Args:
        dt: Datetime read from the database

    Returns:
        ISO format string (e.g., "2025-11-15T09:33:00+08:00") or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=local_timezone())
    return dt.isoformat()


def utc_timestamp() -> str:
    """
    Current UTC time in ISO format with 'Z' suffix.

    Used for response-level timestamps (e.g., "2025-11-15T01:33:00.123Z").
    """
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
