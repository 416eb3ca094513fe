"""Test doubles for the aggregation store."""

from __future__ import annotations

from datetime import datetime

from src.adapters.memory_store import InMemoryAggregationStore
from src.components.analytics import BucketCounter, DetailRecord, StorageError


class RecordingStore(InMemoryAggregationStore):
    """In-memory store that remembers every port call."""

    def __init__(self) -> None:
        super().__init__()
        self.increment_calls: list[tuple[str, str, datetime]] = []
        self.append_calls: list[DetailRecord] = []
        self.query_calls: list[tuple[str, str, str]] = []

    def increment_bucket(self, event_type: str, time_key: str, now: datetime) -> None:
        self.increment_calls.append((event_type, time_key, now))
        super().increment_bucket(event_type, time_key, now)

    def append_detail(self, record: DetailRecord) -> None:
        self.append_calls.append(record)
        super().append_detail(record)

    def query_range(self, event_type: str, start_key: str, end_key: str) -> list[BucketCounter]:
        self.query_calls.append((event_type, start_key, end_key))
        return super().query_range(event_type, start_key, end_key)


class FailingAppendStore(RecordingStore):
    """Increments succeed; every detail append fails."""

    def append_detail(self, record: DetailRecord) -> None:
        self.append_calls.append(record)
        raise StorageError("detail write failed")


class FailingIncrementStore(RecordingStore):
    """Every counter increment fails."""

    def __init__(self, message: str = "connection lost") -> None:
        super().__init__()
        self._message = message

    def increment_bucket(self, event_type: str, time_key: str, now: datetime) -> None:
        self.increment_calls.append((event_type, time_key, now))
        raise StorageError(self._message)


class FailingQueryStore(RecordingStore):
    """Every range query fails."""

    def query_range(self, event_type: str, start_key: str, end_key: str) -> list[BucketCounter]:
        raise StorageError("query timed out")
