"""Datetime utility functions for consistent timezone handling."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def get_current_utc_datetime() -> datetime:
    """
    Get current datetime in UTC timezone.

    Returns:
        datetime: Current UTC datetime with timezone info

    Example:
        >>> now = get_current_utc_datetime()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Return ``value`` as an aware UTC datetime.

    Some backends (SQLite) hand back naive datetimes for timezone-aware
    columns; those are stored in UTC, so they are tagged rather than shifted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def membership_period(start: datetime, duration_days: int) -> tuple[datetime, datetime]:
    """Rolling membership window starting at ``start``."""
    return start, start + timedelta(days=duration_days)


def seconds_until_next_run(now: datetime, hour: int, tz_name: str) -> float:
    """Seconds from ``now`` until the next ``hour``:00 local time in ``tz_name``."""
    tz = ZoneInfo(tz_name)
    local_now = ensure_utc(now).astimezone(tz)
    next_run = local_now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if next_run <= local_now:
        next_run = next_run + timedelta(days=1)
    # Same-tzinfo subtraction ignores DST offsets, so compare in UTC
    return (next_run.astimezone(timezone.utc) - local_now.astimezone(timezone.utc)).total_seconds()
