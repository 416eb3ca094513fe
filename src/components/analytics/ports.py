"""
Analytics component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from .models import BucketCounter, DetailRecord


class AggregationStorePort(Protocol):
    """
    Document store holding bucket counters and detail records.

    All operations raise StorageError on failure.
    """

    def connect(self) -> None:
        """Establish the process-wide connection."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...

    def is_connected(self) -> bool:
        """Report current connectivity without raising."""
        ...

    def increment_bucket(self, event_type: str, time_key: str, now: datetime) -> None:
        """Atomically create the counter at 1 or add 1 and set last_updated."""
        ...

    def append_detail(self, record: DetailRecord) -> None:
        """Insert an immutable detail record."""
        ...

    def query_range(
        self,
        event_type: str,
        start_key: str,
        end_key: str,
    ) -> Sequence[BucketCounter]:
        """Counters with start_key <= time_key <= end_key, ascending by key."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
