"""
SQLite Aggregation Store Adapter.

Implements AggregationStorePort on SQLite. Each operation opens its own
connection so request threads never share a cursor; increments are a single
INSERT ... ON CONFLICT DO UPDATE statement, which SQLite applies atomically.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from src.components.analytics.models import (
    BucketCounter,
    DetailRecord,
    RawJson,
    StorageError,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS bucket_counters (
    event_type TEXT NOT NULL,
    time_key TEXT NOT NULL,
    count INTEGER NOT NULL DEFAULT 1,
    last_updated TEXT NOT NULL,
    PRIMARY KEY (event_type, time_key)
);

CREATE TABLE IF NOT EXISTS detail_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    time_key TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    user_agent TEXT,
    ip_address TEXT,
    referrer TEXT,
    event_data TEXT
);

CREATE INDEX IF NOT EXISTS idx_detail_records_type_key
    ON detail_records (event_type, time_key);
"""


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def db_path_from_url(url: str) -> str:
    """Strip the sqlite:/// scheme from a store URL."""
    if url.startswith("sqlite:///"):
        return url[len("sqlite:///") :]
    return url


class SQLiteAggregationStore:
    """SQLite implementation of AggregationStorePort."""

    def __init__(self, db_path: str, timeout: float = 30.0) -> None:
        self.db_path = db_path
        self._timeout = timeout
        self._connected = False

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self._timeout)
        conn.row_factory = dict_factory
        return conn

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        if not self._connected:
            raise StorageError("Store is not connected")
        try:
            conn = self._open()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def connect(self) -> None:
        """Create the schema; fails fast if the file cannot be opened."""
        parent = Path(self.db_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            conn = self._open()
            try:
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.executescript(SCHEMA)
                conn.commit()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot initialise database {self.db_path}: {e}") from e
        self._connected = True
        logger.info("Connected to SQLite store at %s", self.db_path)

    def close(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        if not self._connected:
            return False
        try:
            conn = self._open()
            try:
                conn.execute("SELECT 1").fetchone()
            finally:
                conn.close()
        except sqlite3.Error:
            return False
        return True

    def increment_bucket(self, event_type: str, time_key: str, now: datetime) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO bucket_counters (event_type, time_key, count, last_updated)
                VALUES (?, ?, 1, ?)
                ON CONFLICT(event_type, time_key) DO UPDATE SET
                    count = count + 1,
                    last_updated = excluded.last_updated
                """,
                (event_type, time_key, now.isoformat()),
            )

    def append_detail(self, record: DetailRecord) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO detail_records (
                    event_type, time_key, timestamp,
                    user_agent, ip_address, referrer, event_data
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.event_type,
                    record.time_key,
                    record.timestamp.isoformat(),
                    record.user_agent,
                    record.ip_address,
                    record.referrer,
                    record.event_data.text if record.event_data else None,
                ),
            )

    def query_range(self, event_type: str, start_key: str, end_key: str) -> list[BucketCounter]:
        with self._conn() as conn:
            rows = conn.execute(
                """
                SELECT * FROM bucket_counters
                WHERE event_type = ? AND time_key >= ? AND time_key <= ?
                ORDER BY time_key ASC
                """,
                (event_type, start_key, end_key),
            ).fetchall()
        return [self._map_counter(r) for r in rows]

    def list_details(self, event_type: str | None = None) -> list[DetailRecord]:
        """All detail records, oldest first (debugging/audit)."""
        query = "SELECT * FROM detail_records"
        params: list[Any] = []
        if event_type:
            query += " WHERE event_type = ?"
            params.append(event_type)
        query += " ORDER BY id ASC"
        with self._conn() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._map_detail(r) for r in rows]

    def _map_counter(self, row: dict[str, Any]) -> BucketCounter:
        return BucketCounter(
            event_type=row["event_type"],
            time_key=row["time_key"],
            count=row["count"],
            last_updated=datetime.fromisoformat(row["last_updated"]),
        )

    def _map_detail(self, row: dict[str, Any]) -> DetailRecord:
        return DetailRecord(
            event_type=row["event_type"],
            time_key=row["time_key"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            user_agent=row["user_agent"],
            ip_address=row["ip_address"],
            referrer=row["referrer"],
            event_data=RawJson(row["event_data"]) if row["event_data"] is not None else None,
        )
