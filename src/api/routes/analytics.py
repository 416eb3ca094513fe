"""
Analytics API Routes.

Page load and event ingestion plus the last-hour page load series.
Store failures surface as 500 {"success": false, "error": ...} through the
application exception handlers.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.api.deps import get_ingestion_service, get_request_metadata
from src.components.analytics import AnalyticsIngestionService

logger = logging.getLogger(__name__)

router = APIRouter()


class MalformedBodyError(Exception):
    """Page load body that is not parseable JSON."""


# --- Request/Response Models ---


class EventRequest(BaseModel):
    """Generic analytics event request."""

    event: str | int = Field(..., description="Event name (stored as event_<name>)")
    data: Any = Field(None, description="Free-form event payload")

    model_config = ConfigDict(extra="allow")

    @field_validator("event")
    @classmethod
    def event_name_as_text(cls, v: str | int) -> str:
        """Numeric names are recorded by their text form."""
        name = str(v)
        if not name:
            raise ValueError("Event name must not be empty")
        return name


class SuccessResponse(BaseModel):
    """Success response."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str


class PageLoadSlot(BaseModel):
    """One minute of the page load series."""

    time_key: str = Field(..., alias="timeKey")
    display_time: str = Field(..., alias="displayTime")
    count: int

    model_config = ConfigDict(populate_by_name=True)


# --- Body ---


async def read_page_load_body(request: Request) -> Any:
    """
    Request body as an opaque JSON value.

    Any JSON value is accepted (object, array, scalar). An empty body reads
    as {}. Unparseable bytes raise MalformedBodyError.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as e:
        raise MalformedBodyError("Malformed JSON body") from e


# --- Routes ---


@router.post(
    "/pageload",
    response_model=SuccessResponse,
    responses={500: {"model": ErrorResponse}},
)
def record_page_load(
    request: Request,
    body: Any = Depends(read_page_load_body),
    service: AnalyticsIngestionService = Depends(get_ingestion_service),
) -> SuccessResponse:
    """
    Record a page load.

    The body is free-form metadata stored verbatim on the detail record.
    """
    logger.info("POST /api/analytics/pageload - Request received")
    logger.debug("Request body: %s", body)

    service.record_page_load(
        service.now(),
        get_request_metadata(request),
        body,
    )

    logger.info("Page load event successfully recorded")
    return SuccessResponse()


@router.post(
    "/event",
    response_model=SuccessResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def record_event(
    request: Request,
    body: EventRequest,
    service: AnalyticsIngestionService = Depends(get_ingestion_service),
) -> SuccessResponse:
    """Record a generic named event (detail log only, no counter)."""
    logger.info("POST /api/analytics/event - Request received")

    service.record_event(
        service.now(),
        get_request_metadata(request),
        body.event,
        body.data,
    )

    logger.info("Analytics event successfully recorded")
    return SuccessResponse()


@router.get(
    "/pageloads",
    response_model=list[PageLoadSlot],
    responses={500: {"model": ErrorResponse}},
)
def get_page_loads(
    service: AnalyticsIngestionService = Depends(get_ingestion_service),
) -> list[dict[str, Any]]:
    """Page loads per minute for the last 60 minutes, oldest first."""
    logger.info("GET /api/analytics/pageloads - Request received")

    slots = service.query_last_60_minutes(service.now())

    logger.info("Returning page load data")
    return [slot.to_dict() for slot in slots]
