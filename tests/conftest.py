from datetime import UTC, datetime

import pytest

from src.adapters.clock import FrozenClock
from src.adapters.memory_store import InMemoryAggregationStore

# 2024-06-15 14:30:45.123 UTC, mid-minute so truncation is visible
FROZEN_NOW = datetime(2024, 6, 15, 14, 30, 45, 123456, tzinfo=UTC)


@pytest.fixture
def frozen_now() -> datetime:
    return FROZEN_NOW


@pytest.fixture
def clock(frozen_now: datetime) -> FrozenClock:
    """Clock frozen at FROZEN_NOW."""
    return FrozenClock(frozen_now)


@pytest.fixture
def memory_store() -> InMemoryAggregationStore:
    """Connected in-memory store."""
    store = InMemoryAggregationStore()
    store.connect()
    return store


@pytest.fixture(autouse=True)
def clean_store_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings-driven tests."""
    for name in (
        "MONGODB_URI",
        "STORE_URL",
        "PORT",
        "HOST",
        "DISPLAY_TIMEZONE",
        "CORS_ORIGINS",
        "LOG_LEVEL",
        "TRUST_PROXY_HEADERS",
    ):
        monkeypatch.delenv(name, raising=False)
