"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime, timedelta

# Smallest step used to keep updated_at strictly increasing.
_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

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

    Use at adapter boundaries to normalize datetimes (SQLite and JSON
    round-trips may drop tzinfo).

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


def advance_timestamp(previous: datetime | None) -> datetime:
    """
    Return a timestamp strictly later than previous (or now if none).

    Wall clocks can stall or step back between two mutations of the same
    record; updated_at must still move forward.

    Args:
        previous: The record's current updated_at, if any

    Returns:
        UTC-aware datetime greater than previous
    """
    now = utc_now()
    previous = ensure_utc(previous)
    if previous is not None and now <= previous:
        return previous + _TICK
    return now


def parse_iso_utc(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO-8601 string (as written by the JSON store) into UTC.

    Args:
        value: ISO string, datetime, or None

    Returns:
        UTC-aware datetime or None
    """
    if value is None or isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
