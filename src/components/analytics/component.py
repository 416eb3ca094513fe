"""
Analytics component - Page load counting and last-hour series.

Invariants:
- I1: At most one counter per (event type, bucket key)
- I2: Counter increments are atomic in the store, never in the service
- I3: Detail records are append-only
- I4: The page load series always has 60 slots, oldest first
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import tzinfo

from ._impl import create_analytics_ingestion_service
from .models import (
    QueryPageLoadsInput,
    RecordEventInput,
    RecordOutput,
    RecordPageLoadInput,
    SeriesOutput,
)
from .ports import AggregationStorePort, TimePort

# --- Component Entry Points ---


def run_record_page_load(
    inp: RecordPageLoadInput,
    *,
    store: AggregationStorePort,
    time_port: TimePort | None = None,
    id_factory: Callable[[], str] | None = None,
) -> RecordOutput:
    """
    Record a page load.

    Args:
        inp: Raw body and request metadata.
        store: Aggregation store port.
        time_port: Optional time port.
        id_factory: Optional detail-key id generator.

    Returns:
        RecordOutput with the appended detail record.

    Raises:
        StorageError: Either store write failed.
    """
    service = create_analytics_ingestion_service(store, time_port, id_factory)
    record = service.record_page_load(service.now(), inp.metadata, inp.body)
    return RecordOutput(record=record)


def run_record_event(
    inp: RecordEventInput,
    *,
    store: AggregationStorePort,
    time_port: TimePort | None = None,
    id_factory: Callable[[], str] | None = None,
) -> RecordOutput:
    """
    Record a generic named event (detail only).

    Raises:
        StorageError: The append failed.
    """
    service = create_analytics_ingestion_service(store, time_port, id_factory)
    record = service.record_event(service.now(), inp.metadata, inp.event_name, inp.data)
    return RecordOutput(record=record)


def run_query_page_loads(
    inp: QueryPageLoadsInput,
    *,
    store: AggregationStorePort,
    time_port: TimePort | None = None,
    display_tz: tzinfo | None = None,
) -> SeriesOutput:
    """
    Per-minute counts for the last hour.

    Raises:
        StorageError: The range query failed.
    """
    service = create_analytics_ingestion_service(store, time_port, display_tz=display_tz)
    slots = service.query_last_60_minutes(service.now(), inp.event_type)
    return SeriesOutput(slots=tuple(slots))


def run(
    inp: RecordPageLoadInput | RecordEventInput | QueryPageLoadsInput,
    *,
    store: AggregationStorePort,
    time_port: TimePort | None = None,
    id_factory: Callable[[], str] | None = None,
    display_tz: tzinfo | None = None,
) -> RecordOutput | SeriesOutput:
    """
    Main entry point for the analytics component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, RecordPageLoadInput):
        return run_record_page_load(inp, store=store, time_port=time_port, id_factory=id_factory)
    elif isinstance(inp, RecordEventInput):
        return run_record_event(inp, store=store, time_port=time_port, id_factory=id_factory)
    elif isinstance(inp, QueryPageLoadsInput):
        return run_query_page_loads(inp, store=store, time_port=time_port, display_tz=display_tz)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
