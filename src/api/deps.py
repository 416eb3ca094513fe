import os
from functools import lru_cache
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from fastapi import Depends, Request

from src.adapters.clock import SystemClock
from src.components.analytics import (
    AggregationStorePort,
    AnalyticsIngestionService,
    RequestMetadata,
    SeriesBuilder,
)
from src.components.analytics.ports import TimePort

load_dotenv()

DEFAULT_PORT = 3001


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        raw_port = os.environ.get("PORT", str(DEFAULT_PORT)).strip()
        self.port = int(raw_port) if raw_port.isdigit() else -1
        self.host = os.environ.get("HOST", "0.0.0.0")
        # MONGODB_URI kept as the primary name for existing deployments
        self.store_url = os.environ.get("MONGODB_URI") or os.environ.get("STORE_URL") or None
        self.display_timezone = os.environ.get("DISPLAY_TIMEZONE") or None
        self.cors_origins = [
            o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        self.log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        # Only enable behind a reverse proxy that overwrites X-Forwarded-For
        self.trust_proxy_headers = os.environ.get("TRUST_PROXY_HEADERS", "").strip().lower() in (
            "1",
            "true",
            "yes",
        )

    def display_tz(self) -> ZoneInfo | None:
        return ZoneInfo(self.display_timezone) if self.display_timezone else None


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Store ---
def get_store(request: Request) -> AggregationStorePort:
    """The process-wide store created by the app factory."""
    return request.app.state.store


# --- Clock ---
_clock_instance: TimePort | None = None


def get_clock() -> TimePort:
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Services ---
def get_ingestion_service(
    request: Request,
    store: AggregationStorePort = Depends(get_store),
    clock: TimePort = Depends(get_clock),
) -> AnalyticsIngestionService:
    """Get analytics ingestion service dependency."""
    return AnalyticsIngestionService(
        store=store,
        time_port=clock,
        series_builder=SeriesBuilder(display_tz=request.app.state.display_tz),
    )


# --- Request metadata ---
def get_client_ip(request: Request) -> str | None:
    """
    Client address.

    The socket peer by default. The first X-Forwarded-For hop is used only
    when the app was built with trust_proxy_headers set.
    """
    if getattr(request.app.state, "trust_proxy_headers", False):
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_request_metadata(request: Request) -> RequestMetadata:
    return RequestMetadata(
        user_agent=request.headers.get("user-agent"),
        ip_address=get_client_ip(request),
        referrer=request.headers.get("referer"),
    )
