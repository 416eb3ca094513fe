"""
Analytics component - Page load ingestion and per-minute aggregation.
"""

from ._bucket import bucket_key, display_time, iso_timestamp
from ._impl import (
    SERIES_MINUTES,
    AnalyticsIngestionService,
    DefaultTimePort,
    SeriesBuilder,
    create_analytics_ingestion_service,
    new_record_id,
)
from .component import (
    run,
    run_query_page_loads,
    run_record_event,
    run_record_page_load,
)
from .models import (
    DEFAULT_REFERRER,
    DEFAULT_USER_AGENT,
    EVENT_PREFIX,
    PAGE_LOAD,
    PAGE_LOAD_DETAIL,
    BucketCounter,
    DetailRecord,
    QueryPageLoadsInput,
    RawJson,
    RecordEventInput,
    RecordOutput,
    RecordPageLoadInput,
    RequestMetadata,
    SeriesOutput,
    SeriesSlot,
    StorageError,
)
from .ports import AggregationStorePort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_query_page_loads",
    "run_record_event",
    "run_record_page_load",
    # Bucketing
    "bucket_key",
    "display_time",
    "iso_timestamp",
    # Services
    "AnalyticsIngestionService",
    "DefaultTimePort",
    "SeriesBuilder",
    "SERIES_MINUTES",
    "create_analytics_ingestion_service",
    "new_record_id",
    # Models
    "BucketCounter",
    "DetailRecord",
    "RawJson",
    "RequestMetadata",
    "SeriesSlot",
    "StorageError",
    "QueryPageLoadsInput",
    "RecordEventInput",
    "RecordPageLoadInput",
    "RecordOutput",
    "SeriesOutput",
    # Constants
    "DEFAULT_REFERRER",
    "DEFAULT_USER_AGENT",
    "EVENT_PREFIX",
    "PAGE_LOAD",
    "PAGE_LOAD_DETAIL",
    # Ports
    "AggregationStorePort",
    "TimePort",
]
