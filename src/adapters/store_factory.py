"""
Aggregation store selection by connection URL.

Supported schemes:
- memory://                    in-process store (dev/tests)
- sqlite:///path/to/file.db    SQLite file
- mongodb://, mongodb+srv://   MongoDB
"""

from __future__ import annotations

from src.adapters.memory_store import InMemoryAggregationStore
from src.adapters.mongo.analytics_store import MongoAggregationStore
from src.adapters.sqlite.analytics_store import SQLiteAggregationStore, db_path_from_url
from src.components.analytics.ports import AggregationStorePort

MEMORY_SCHEME = "memory://"
SQLITE_SCHEME = "sqlite:///"
MONGO_SCHEMES = ("mongodb://", "mongodb+srv://")


class UnsupportedStoreError(ValueError):
    """Store URL missing or with an unknown scheme."""


def is_supported_store_url(url: str | None) -> bool:
    if not url:
        return False
    return url.startswith((MEMORY_SCHEME, SQLITE_SCHEME, *MONGO_SCHEMES))


def create_store(url: str | None) -> AggregationStorePort:
    """Build (but do not connect) the store for ``url``."""
    if not url:
        raise UnsupportedStoreError("Store connection string is not set")
    if url.startswith(MEMORY_SCHEME):
        return InMemoryAggregationStore()
    if url.startswith(SQLITE_SCHEME):
        path = db_path_from_url(url)
        if not path:
            raise UnsupportedStoreError("SQLite store URL has no database path")
        return SQLiteAggregationStore(path)
    if url.startswith(MONGO_SCHEMES):
        return MongoAggregationStore(url)
    scheme = url.split(":", 1)[0]
    raise UnsupportedStoreError(f"Unrecognized store connection string scheme: {scheme}")
