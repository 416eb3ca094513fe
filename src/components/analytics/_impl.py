"""
AnalyticsIngestionService and SeriesBuilder - Ingestion and last-hour series.

Key behaviors:
- Page loads increment the minute counter, then append a detail record
- The two page-load writes are independent; no rollback on partial failure
- Generic events append a detail record only
- The series is always 60 one-minute slots, oldest first, zero-filled
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any
from uuid import uuid4

from ._bucket import bucket_key, display_time, iso_timestamp
from .models import (
    DEFAULT_REFERRER,
    DEFAULT_USER_AGENT,
    EVENT_PREFIX,
    PAGE_LOAD,
    PAGE_LOAD_DETAIL,
    BucketCounter,
    DetailRecord,
    RawJson,
    RequestMetadata,
    SeriesSlot,
)
from .ports import AggregationStorePort, TimePort

logger = logging.getLogger(__name__)

SERIES_MINUTES = 60
SERIES_STEP = timedelta(minutes=1)
SERIES_SPAN = timedelta(minutes=SERIES_MINUTES)


# --- Default Implementations ---


class DefaultTimePort:
    """Default time provider."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        return datetime.now(UTC)


def new_record_id() -> str:
    """Fresh random identifier for detail keys."""
    return str(uuid4())


# --- Series Builder ---


class SeriesBuilder:
    """
    Densifies sparse bucket counters into a fixed 60-minute series.

    Slot keys come from the same bucket_key() used at ingestion time, so a
    counter matches a slot only on exact key equality.
    """

    def __init__(self, display_tz: tzinfo | None = None) -> None:
        self._display_tz = display_tz

    def series_range(self, now: datetime) -> tuple[str, str]:
        """Inclusive (start_key, end_key) for the store range query."""
        return bucket_key(now - SERIES_SPAN), bucket_key(now)

    def build_last_60_minutes(
        self,
        now: datetime,
        counters: Sequence[BucketCounter],
    ) -> list[SeriesSlot]:
        """Build exactly 60 slots ending at ``now``."""
        by_key: dict[str, int] = {}
        for counter in counters:
            # First match wins
            by_key.setdefault(counter.time_key, counter.count)

        slots: list[SeriesSlot] = []
        for i in range(SERIES_MINUTES - 1, -1, -1):
            minute_time = now - i * SERIES_STEP
            key = bucket_key(minute_time)
            slots.append(
                SeriesSlot(
                    time_key=key,
                    display_time=display_time(minute_time, self._display_tz),
                    count=by_key.get(key, 0),
                )
            )
        return slots


# --- Analytics Ingestion Service ---


class AnalyticsIngestionService:
    """
    Page load and event ingestion plus the last-hour query.

    Holds no state between calls; everything lives in the store.
    """

    def __init__(
        self,
        store: AggregationStorePort,
        time_port: TimePort | None = None,
        id_factory: Callable[[], str] | None = None,
        series_builder: SeriesBuilder | None = None,
    ) -> None:
        """Initialize service."""
        self._store = store
        self._time = time_port or DefaultTimePort()
        self._new_id = id_factory or new_record_id
        self._series = series_builder or SeriesBuilder()

    def now(self) -> datetime:
        return self._time.now_utc()

    def _detail(
        self,
        event_type: str,
        time_key: str,
        now: datetime,
        metadata: RequestMetadata,
        payload: Any,
    ) -> DetailRecord:
        return DetailRecord(
            event_type=event_type,
            time_key=f"{time_key}#{self._new_id()}",
            timestamp=now,
            user_agent=metadata.user_agent or DEFAULT_USER_AGENT,
            ip_address=metadata.ip_address,
            referrer=metadata.referrer or DEFAULT_REFERRER,
            event_data=payload if isinstance(payload, RawJson) else RawJson.from_value(payload),
        )

    def record_page_load(
        self,
        now: datetime,
        metadata: RequestMetadata,
        raw_body: Any,
    ) -> DetailRecord:
        """
        Count a page load and log its detail record.

        If the detail append fails, the counter increment stays.

        Returns:
            The detail record that was appended.
        """
        minute_key = bucket_key(now)
        logger.info("Updating page load count for bucket %s", minute_key)
        self._store.increment_bucket(PAGE_LOAD, minute_key, now)

        record = self._detail(PAGE_LOAD_DETAIL, minute_key, now, metadata, raw_body)
        logger.debug("Logging page load detail %s", record.time_key)
        self._store.append_detail(record)
        return record

    def record_event(
        self,
        now: datetime,
        metadata: RequestMetadata,
        event_name: str,
        event_payload: Any,
    ) -> DetailRecord:
        """Log a generic named event. No counter is touched."""
        record = self._detail(
            f"{EVENT_PREFIX}{event_name}",
            iso_timestamp(now),
            now,
            metadata,
            event_payload,
        )
        logger.info("Logging analytics event %s", record.event_type)
        self._store.append_detail(record)
        return record

    def query_last_60_minutes(
        self,
        now: datetime,
        event_type: str = PAGE_LOAD,
    ) -> list[SeriesSlot]:
        """Range-query the store and densify into 60 slots."""
        start_key, end_key = self._series.series_range(now)
        logger.info("Querying %s counters from %s to %s", event_type, start_key, end_key)
        counters = self._store.query_range(event_type, start_key, end_key)
        return self._series.build_last_60_minutes(now, counters)


# --- Factory ---


def create_analytics_ingestion_service(
    store: AggregationStorePort,
    time_port: TimePort | None = None,
    id_factory: Callable[[], str] | None = None,
    display_tz: tzinfo | None = None,
) -> AnalyticsIngestionService:
    """Create an AnalyticsIngestionService."""
    return AnalyticsIngestionService(
        store=store,
        time_port=time_port,
        id_factory=id_factory,
        series_builder=SeriesBuilder(display_tz=display_tz),
    )
