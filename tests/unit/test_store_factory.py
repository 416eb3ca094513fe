import pytest

from src.adapters.memory_store import InMemoryAggregationStore
from src.adapters.mongo.analytics_store import MongoAggregationStore
from src.adapters.sqlite.analytics_store import SQLiteAggregationStore
from src.adapters.store_factory import (
    UnsupportedStoreError,
    create_store,
    is_supported_store_url,
)


def test_memory_url():
    assert isinstance(create_store("memory://"), InMemoryAggregationStore)


def test_sqlite_url():
    store = create_store("sqlite:///data/analytics.db")
    assert isinstance(store, SQLiteAggregationStore)
    assert store.db_path == "data/analytics.db"


@pytest.mark.parametrize(
    "url",
    ["mongodb://localhost:27017/analytics", "mongodb+srv://user:pw@cluster.example.net/db"],
)
def test_mongo_urls_build_without_connecting(url):
    store = create_store(url)
    assert isinstance(store, MongoAggregationStore)
    assert store.is_connected() is False


@pytest.mark.parametrize("url", [None, ""])
def test_missing_url_rejected(url):
    with pytest.raises(UnsupportedStoreError, match="not set"):
        create_store(url)


def test_unknown_scheme_rejected():
    with pytest.raises(UnsupportedStoreError, match="postgresql"):
        create_store("postgresql://localhost/db")


def test_sqlite_without_path_rejected():
    with pytest.raises(UnsupportedStoreError):
        create_store("sqlite:///")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("memory://", True),
        ("sqlite:///a.db", True),
        ("mongodb://h", True),
        ("mongodb+srv://h", True),
        ("redis://h", False),
        ("", False),
        (None, False),
    ],
)
def test_is_supported_store_url(url, expected):
    assert is_supported_store_url(url) is expected
