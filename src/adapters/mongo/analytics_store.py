"""
MongoDB Aggregation Store Adapter.

Implements AggregationStorePort with pymongo. Documents keep the camelCase
field names and collection names used by existing page-load deployments so
a running database can be pointed at this service unchanged.

Increment is find_one_and_update with $inc and upsert=True against a unique
(eventType, timeKey) index. Two racing upserts on a fresh key can make one
of them fail with DuplicateKeyError; that attempt is retried here, where the
document now exists and the $inc applies.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pymongo import ASCENDING, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.components.analytics.models import (
    PAGE_LOAD_DETAIL,
    BucketCounter,
    DetailRecord,
    StorageError,
)

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = "pageloads"
PAGE_LOAD_DETAILS_COLLECTION = "pageloaddetails"
EVENTS_COLLECTION = "analyticsevents"

UPSERT_ATTEMPTS = 3


class MongoAggregationStore:
    """MongoDB implementation of AggregationStorePort."""

    def __init__(
        self,
        uri: str,
        database: str | None = None,
        client: MongoClient | None = None,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self._uri = uri
        self._database_name = database
        self._client = client
        self._owns_client = client is None
        self._timeout_ms = server_selection_timeout_ms
        self._db: Any = None

    # --- Lifecycle ---

    def connect(self) -> None:
        """Open the client, verify connectivity and ensure indexes."""
        try:
            if self._client is None:
                self._client = MongoClient(
                    self._uri,
                    serverSelectionTimeoutMS=self._timeout_ms,
                    tz_aware=True,
                )
            self._client.admin.command("ping")
            if self._database_name:
                self._db = self._client[self._database_name]
            else:
                self._db = self._client.get_default_database("analytics")
            self._ensure_indexes()
        except PyMongoError as e:
            raise StorageError(f"Failed to connect to database: {e}") from e
        logger.info("Connected to MongoDB database %s", self._db.name)

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self._db = None

    def is_connected(self) -> bool:
        if self._client is None or self._db is None:
            return False
        try:
            self._client.admin.command("ping")
        except PyMongoError:
            return False
        return True

    def _ensure_indexes(self) -> None:
        self._collection(COUNTERS_COLLECTION).create_indexes(
            [IndexModel([("eventType", ASCENDING), ("timeKey", ASCENDING)], unique=True)]
        )
        for name in (PAGE_LOAD_DETAILS_COLLECTION, EVENTS_COLLECTION):
            self._collection(name).create_indexes(
                [IndexModel([("eventType", ASCENDING), ("timeKey", ASCENDING)])]
            )

    def _collection(self, name: str) -> Collection:
        if self._db is None:
            raise StorageError("Store is not connected")
        return self._db[name]

    # --- Port operations ---

    def increment_bucket(self, event_type: str, time_key: str, now: datetime) -> None:
        counters = self._collection(COUNTERS_COLLECTION)
        for attempt in range(1, UPSERT_ATTEMPTS + 1):
            try:
                counters.find_one_and_update(
                    {"eventType": event_type, "timeKey": time_key},
                    {"$inc": {"count": 1}, "$set": {"lastUpdated": now}},
                    upsert=True,
                )
                return
            except DuplicateKeyError:
                logger.debug("Upsert race on %s/%s (attempt %d)", event_type, time_key, attempt)
            except PyMongoError as e:
                raise StorageError(str(e)) from e
        raise StorageError(f"Could not increment {event_type}/{time_key}: upsert kept conflicting")

    def append_detail(self, record: DetailRecord) -> None:
        name = (
            PAGE_LOAD_DETAILS_COLLECTION
            if record.event_type == PAGE_LOAD_DETAIL
            else EVENTS_COLLECTION
        )
        try:
            self._collection(name).insert_one(self._detail_document(record))
        except PyMongoError as e:
            raise StorageError(str(e)) from e

    def query_range(self, event_type: str, start_key: str, end_key: str) -> list[BucketCounter]:
        try:
            cursor = self._collection(COUNTERS_COLLECTION).find(
                {"eventType": event_type, "timeKey": {"$gte": start_key, "$lte": end_key}}
            ).sort("timeKey", ASCENDING)
            docs = list(cursor)
        except PyMongoError as e:
            raise StorageError(str(e)) from e
        return [self._map_counter(d) for d in docs]

    # --- Mapping ---

    def _detail_document(self, record: DetailRecord) -> dict[str, Any]:
        return {
            "eventType": record.event_type,
            "timeKey": record.time_key,
            "timestamp": record.timestamp,
            "userAgent": record.user_agent,
            "ipAddress": record.ip_address,
            "referrer": record.referrer,
            "eventData": record.event_data.value() if record.event_data else None,
        }

    def _map_counter(self, doc: dict[str, Any]) -> BucketCounter:
        return BucketCounter(
            event_type=doc["eventType"],
            time_key=doc["timeKey"],
            count=int(doc.get("count", 0)),
            last_updated=doc.get("lastUpdated"),
        )
