"""
Tests for the Health Endpoint.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.memory_store import InMemoryAggregationStore
from src.api.deps import Settings
from src.api.main import create_app
from src.shell.http.health import (
    CheckResult,
    ConnectionState,
    HealthStatus,
    StoreCheck,
    connection_state,
    create_health_router,
)

# --- Test Fixtures ---


class ExplodingStore(InMemoryAggregationStore):
    def is_connected(self) -> bool:
        raise RuntimeError("driver crashed")


@pytest.fixture
def store() -> InMemoryAggregationStore:
    return InMemoryAggregationStore()


@pytest.fixture
def client(store: InMemoryAggregationStore) -> Iterator[TestClient]:
    with TestClient(create_app(settings=Settings(), store=store)) as client:
        yield client


# --- StoreCheck Tests ---


class TestStoreCheck:
    def test_connected_store_healthy(self, store: InMemoryAggregationStore) -> None:
        store.connect()
        result = StoreCheck(store).check()
        assert result.status == HealthStatus.HEALTHY
        assert result.name == "mongodb"
        assert result.latency_ms >= 0

    def test_disconnected_store_unhealthy(self, store: InMemoryAggregationStore) -> None:
        result = StoreCheck(store).check()
        assert result.status == HealthStatus.UNHEALTHY

    def test_missing_store_unhealthy(self) -> None:
        result = StoreCheck(None).check()
        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == "Store not configured"

    def test_check_error_reported_as_disconnected(self) -> None:
        result = StoreCheck(ExplodingStore()).check()
        assert result.status == HealthStatus.UNHEALTHY

    def test_connection_state_mapping(self) -> None:
        healthy = CheckResult(name="mongodb", status=HealthStatus.HEALTHY)
        unhealthy = CheckResult(name="mongodb", status=HealthStatus.UNHEALTHY)
        assert connection_state(healthy) == ConnectionState.CONNECTED
        assert connection_state(unhealthy) == ConnectionState.DISCONNECTED


# --- Endpoint Tests ---


class TestHealthEndpoint:
    def test_connected(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "mongodb": "connected"}

    def test_disconnected_still_200(
        self, client: TestClient, store: InMemoryAggregationStore
    ) -> None:
        store.close()
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "mongodb": "disconnected"}

    def test_toggles_with_store_state(
        self, client: TestClient, store: InMemoryAggregationStore
    ) -> None:
        states = []
        for action in (store.close, store.connect):
            action()
            states.append(client.get("/api/health").json()["mongodb"])
        assert states == ["disconnected", "connected"]

    def test_router_without_store_on_state(self) -> None:
        app = FastAPI()
        app.include_router(create_health_router(), prefix="/api")
        response = TestClient(app).get("/api/health")
        assert response.status_code == 200
        assert response.json()["mongodb"] == "disconnected"

    def test_check_detail_logged_at_debug(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="src.shell.http.health"):
            client.get("/api/health")
        assert any(
            "Health check mongodb: Store connected" in r.getMessage() for r in caplog.records
        )
