"""
Analytics component input/output models.

Counters and detail records are owned by the store; series slots are
derived on read and never persisted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# --- Event Type Discriminators ---

PAGE_LOAD = "pageLoad"
PAGE_LOAD_DETAIL = "pageLoadDetail"
EVENT_PREFIX = "event_"

DEFAULT_USER_AGENT = "Unknown"
DEFAULT_REFERRER = "Direct"


# --- Errors ---


class StorageError(Exception):
    """Store unavailable, read/write failure or connection loss."""


# --- Opaque Payload ---


@dataclass(frozen=True)
class RawJson:
    """
    Schema-less client payload carried through to storage.

    The core never looks inside; adapters decide whether to keep the text
    or the decoded value.
    """

    text: str

    @classmethod
    def from_value(cls, value: Any) -> RawJson:
        return cls(json.dumps(value, separators=(",", ":"), default=str))

    def value(self) -> Any:
        return json.loads(self.text)


# --- Stored Entities ---


@dataclass(frozen=True)
class BucketCounter:
    """Total count of one event type within one bucket."""

    event_type: str
    time_key: str
    count: int
    last_updated: datetime


@dataclass(frozen=True)
class DetailRecord:
    """Immutable log of one raw occurrence."""

    event_type: str
    time_key: str
    timestamp: datetime
    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None
    event_data: RawJson | None = None


@dataclass(frozen=True)
class RequestMetadata:
    """Client details taken from the HTTP request."""

    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None


# --- Derived ---


@dataclass(frozen=True)
class SeriesSlot:
    """One minute of the densified series."""

    time_key: str
    display_time: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeKey": self.time_key,
            "displayTime": self.display_time,
            "count": self.count,
        }


# --- Component Inputs ---


@dataclass(frozen=True)
class RecordPageLoadInput:
    """Input for recording a page load."""

    body: Any = None
    metadata: RequestMetadata = field(default_factory=RequestMetadata)


@dataclass(frozen=True)
class RecordEventInput:
    """Input for recording a generic named event."""

    event_name: str
    data: Any = None
    metadata: RequestMetadata = field(default_factory=RequestMetadata)


@dataclass(frozen=True)
class QueryPageLoadsInput:
    """Input for the last-hour page load series."""

    event_type: str = PAGE_LOAD


# --- Component Outputs ---


@dataclass(frozen=True)
class RecordOutput:
    """Output for ingestion operations."""

    record: DetailRecord
    success: bool = True


@dataclass(frozen=True)
class SeriesOutput:
    """Output for the series query."""

    slots: tuple[SeriesSlot, ...]
    success: bool = True

    def to_list(self) -> list[dict[str, Any]]:
        return [slot.to_dict() for slot in self.slots]
