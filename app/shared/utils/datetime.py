"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

import math
from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Services take a clock callable defaulting to this function so that
    expiry and lockout logic can be driven by tests.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries: SQLite hands back naive
    values even for DateTime(timezone=True) columns.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def minutes_until(later: datetime, now: datetime) -> int:
    """Whole minutes from now until later, rounded up (0 when later has passed)."""
    seconds = (ensure_utc(later) - ensure_utc(now)).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60)
