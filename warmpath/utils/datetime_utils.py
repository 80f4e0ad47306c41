"""
Datetime utilities for warmpath services.
"""
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 86_400


def make_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware (UTC if naive).

    Args:
        dt: A datetime object that may or may not have timezone info

    Returns:
        The same datetime with UTC timezone if it was naive,
        or the original timezone-aware datetime, or None if input was None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """
    Fractional number of days from start to end.

    Naive datetimes are treated as UTC. The result is negative when
    end precedes start.
    """
    delta = make_aware(end) - make_aware(start)
    return delta.total_seconds() / SECONDS_PER_DAY


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return make_aware(value)
    text = value.strip()
    # fromisoformat only accepts a trailing Z from Python 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return make_aware(datetime.fromisoformat(text))
