"""
In-memory aggregation store for testing/dev.

Counters live in a dict keyed by (event_type, time_key). A store-owned lock
makes the read-modify-write of an increment atomic, standing in for the
upsert primitive a real document store provides.
"""

from __future__ import annotations

import threading
from datetime import datetime

from src.components.analytics.models import BucketCounter, DetailRecord, StorageError


class InMemoryAggregationStore:
    """In-memory implementation of AggregationStorePort."""

    def __init__(self) -> None:
        self._counters: dict[tuple[str, str], BucketCounter] = {}
        self._details: list[DetailRecord] = []
        self._lock = threading.Lock()
        self._connected = False

    def connect(self) -> None:
        self._connected = True

    def close(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected:
            raise StorageError("Store is not connected")

    def increment_bucket(self, event_type: str, time_key: str, now: datetime) -> None:
        self._require_connection()
        key = (event_type, time_key)
        with self._lock:
            current = self._counters.get(key)
            count = current.count + 1 if current else 1
            self._counters[key] = BucketCounter(
                event_type=event_type,
                time_key=time_key,
                count=count,
                last_updated=now,
            )

    def append_detail(self, record: DetailRecord) -> None:
        self._require_connection()
        with self._lock:
            self._details.append(record)

    def query_range(self, event_type: str, start_key: str, end_key: str) -> list[BucketCounter]:
        self._require_connection()
        with self._lock:
            matches = [
                c
                for (etype, key), c in self._counters.items()
                if etype == event_type and start_key <= key <= end_key
            ]
        return sorted(matches, key=lambda c: c.time_key)

    # --- Inspection helpers (testing) ---

    def get_counter(self, event_type: str, time_key: str) -> BucketCounter | None:
        return self._counters.get((event_type, time_key))

    def get_details(self) -> list[DetailRecord]:
        return list(self._details)
