"""
Health endpoint.

Key behaviors:
- /api/health always answers 200 so liveness probes stay simple
- Store connectivity is reported as a field value, never as an error status
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum

from fastapi import APIRouter, Request

from src.components.analytics import AggregationStorePort

logger = logging.getLogger(__name__)

# --- Types ---


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ConnectionState(str, Enum):
    """Store connectivity as reported to clients."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0


# --- Store Check ---


class StoreCheck:
    """Store connectivity check."""

    name = "mongodb"

    def __init__(self, store: AggregationStorePort | None) -> None:
        self._store = store

    def check(self) -> CheckResult:
        """Check store connectivity."""
        start = time.time()

        if self._store is None:
            return CheckResult(
                name=self.name,
                status=HealthStatus.UNHEALTHY,
                message="Store not configured",
            )

        try:
            connected = self._store.is_connected()
        except Exception as e:
            logger.warning("Store connectivity check failed: %s", e)
            connected = False

        latency = (time.time() - start) * 1000
        if connected:
            return CheckResult(
                name=self.name,
                status=HealthStatus.HEALTHY,
                message="Store connected",
                latency_ms=latency,
            )
        return CheckResult(
            name=self.name,
            status=HealthStatus.UNHEALTHY,
            message="Store disconnected",
            latency_ms=latency,
        )


def connection_state(result: CheckResult) -> ConnectionState:
    if result.status == HealthStatus.HEALTHY:
        return ConnectionState.CONNECTED
    return ConnectionState.DISCONNECTED


# --- FastAPI Router ---


def create_health_router() -> APIRouter:
    """
    Create FastAPI router for the health endpoint.

    The store is read from ``app.state.store`` on each call.
    """
    router = APIRouter(tags=["health"])

    @router.get(
        "/health",
        responses={200: {"description": "Process is up; store state in the body"}},
    )
    def health_check(request: Request) -> dict[str, str]:
        """Basic health check endpoint."""
        logger.info("GET /api/health - Request received")
        store = getattr(request.app.state, "store", None)
        result = StoreCheck(store).check()
        logger.debug(
            "Health check %s: %s (%.1fms)", result.name, result.message, result.latency_ms
        )
        return {
            "status": HealthStatus.HEALTHY.value,
            "mongodb": connection_state(result).value,
        }

    return router
