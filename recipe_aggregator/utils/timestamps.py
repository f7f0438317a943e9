"""Timestamp utilities for UTC handling.

The governors compare absolute UTC datetimes (cache expiry, cooldown windows)
and structured diagnostics carry ISO 8601 timestamps.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime; the default governor clock."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return dt in UTC, treating naive datetimes as already UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime], include_microseconds: bool = False) -> str:
    """Render dt as an ISO 8601 UTC string with a 'Z' suffix.

    None renders as an empty string so optional windows (a cooldown that was
    never entered) can be logged without a guard.

    Example:
        >>> format_timestamp(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))
        '2025-01-01T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    pattern = "%Y-%m-%dT%H:%M:%S.%fZ" if include_microseconds else "%Y-%m-%dT%H:%M:%SZ"
    return dt_utc.strftime(pattern)


def format_timestamp_for_log(dt: Optional[datetime]) -> str:
    """Second-precision timestamp for the occurred_at/cooldown_until log fields."""
    return format_timestamp(dt, include_microseconds=False)
