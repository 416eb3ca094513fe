"""
TimeBucketer - Instant to bucket-key and display-string mapping.

Key behaviors:
- Bucket keys are the first 16 characters of the ISO-8601 UTC string with
  the literal "0:00" appended (e.g. "2024-06-15T14:30" + "0:00")
- Keys sort lexicographically in chronological order
- Naive datetimes are treated as UTC
- Display strings are for humans only and never stored
"""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo

KEY_PREFIX_LENGTH = 16
KEY_SUFFIX = "0:00"


def _as_utc(instant: datetime) -> datetime:
    """Normalize an instant to an aware UTC datetime."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def iso_timestamp(instant: datetime) -> str:
    """
    Full ISO-8601 UTC string with millisecond precision.

    Matches the browser/JS shape: 2024-06-15T14:30:45.123Z
    """
    ts = _as_utc(instant)
    return f"{ts:%Y-%m-%dT%H:%M:%S}.{ts.microsecond // 1000:03d}Z"


def bucket_key(instant: datetime) -> str:
    """Compute the bucket key for an instant."""
    return iso_timestamp(instant)[:KEY_PREFIX_LENGTH] + KEY_SUFFIX


def display_time(instant: datetime, tz: tzinfo | None = None) -> str:
    """
    Wall-clock time string, e.g. "2:30:45 PM".

    Converted to ``tz`` when given, otherwise to the server's local zone.
    """
    ts = _as_utc(instant)
    local = ts.astimezone(tz) if tz is not None else ts.astimezone()
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
