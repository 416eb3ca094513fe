"""
Tests for bucket keys and display strings.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.components.analytics import bucket_key, display_time, iso_timestamp

# --- ISO Timestamp ---


class TestIsoTimestamp:
    """Full ISO strings match the browser shape."""

    def test_millisecond_precision_with_z(self) -> None:
        ts = datetime(2024, 6, 15, 14, 30, 45, 123456, tzinfo=UTC)
        assert iso_timestamp(ts) == "2024-06-15T14:30:45.123Z"

    def test_zero_milliseconds_padded(self) -> None:
        ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert iso_timestamp(ts) == "2024-01-02T03:04:05.000Z"

    def test_naive_treated_as_utc(self) -> None:
        assert iso_timestamp(datetime(2024, 6, 15, 14, 30, 45)) == "2024-06-15T14:30:45.000Z"

    def test_aware_converted_to_utc(self) -> None:
        ts = datetime(2024, 6, 15, 16, 30, 45, tzinfo=timezone(timedelta(hours=2)))
        assert iso_timestamp(ts) == "2024-06-15T14:30:45.000Z"


# --- Bucket Key ---


class TestBucketKey:
    """Bucket key is the 16-char ISO prefix plus '0:00'."""

    def test_exact_format(self) -> None:
        ts = datetime(2024, 6, 15, 14, 30, 45, 123456, tzinfo=UTC)
        assert bucket_key(ts) == "2024-06-15T14:300:00"

    def test_key_is_prefix_plus_suffix(self) -> None:
        ts = datetime(2025, 12, 31, 23, 59, 59, 999999, tzinfo=UTC)
        assert bucket_key(ts) == iso_timestamp(ts)[:16] + "0:00"

    def test_seconds_and_subseconds_ignored(self) -> None:
        a = datetime(2024, 6, 15, 14, 37, 0, tzinfo=UTC)
        b = datetime(2024, 6, 15, 14, 37, 59, 999999, tzinfo=UTC)
        assert bucket_key(a) == bucket_key(b)

    def test_different_minutes_give_different_keys(self) -> None:
        a = datetime(2024, 6, 15, 14, 31, 0, tzinfo=UTC)
        b = datetime(2024, 6, 15, 14, 32, 0, tzinfo=UTC)
        assert bucket_key(a) != bucket_key(b)

    def test_timezone_normalized(self) -> None:
        local = datetime(2024, 6, 15, 15, 30, 10, tzinfo=ZoneInfo("Europe/London"))
        assert bucket_key(local) == "2024-06-15T14:300:00"

    def test_deterministic(self) -> None:
        ts = datetime(2024, 6, 15, 14, 30, 45, tzinfo=UTC)
        assert bucket_key(ts) == bucket_key(ts)

    @pytest.mark.parametrize(
        "start",
        [
            datetime(2024, 6, 15, 14, 0, 0, tzinfo=UTC),
            datetime(2024, 12, 31, 23, 30, 0, tzinfo=UTC),  # crosses year
            datetime(2024, 2, 28, 23, 45, 30, tzinfo=UTC),  # leap day
        ],
    )
    def test_lexicographic_order_is_chronological(self, start: datetime) -> None:
        instants = [start + timedelta(seconds=17 * i) for i in range(400)]
        keys = [bucket_key(t) for t in instants]
        assert keys == sorted(keys)


# --- Display Time ---


class TestDisplayTime:
    """Display strings are 12-hour wall-clock times."""

    def test_afternoon(self) -> None:
        ts = datetime(2024, 6, 15, 14, 30, 45, tzinfo=UTC)
        assert display_time(ts, UTC) == "2:30:45 PM"

    def test_midnight(self) -> None:
        ts = datetime(2024, 6, 15, 0, 5, 9, tzinfo=UTC)
        assert display_time(ts, UTC) == "12:05:09 AM"

    def test_noon(self) -> None:
        ts = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)
        assert display_time(ts, UTC) == "12:00:00 PM"

    def test_converted_to_display_zone(self) -> None:
        ts = datetime(2024, 6, 15, 14, 30, 45, tzinfo=UTC)
        # BST is UTC+1 in June
        assert display_time(ts, ZoneInfo("Europe/London")) == "3:30:45 PM"

    def test_server_local_zone_when_unset(self) -> None:
        ts = datetime(2024, 6, 15, 14, 30, 45, tzinfo=UTC)
        local = ts.astimezone()
        assert display_time(ts).startswith(f"{local.hour % 12 or 12}:{local.minute:02d}")
