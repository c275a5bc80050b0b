"""
regioncache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import logging
import os
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from regioncache.store import BackendType, InMemoryDocumentStore

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


# Redis availability checker
def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    import socket

    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except Exception:
        return False


# Skip marker for Redis tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def redis_client(test_redis_url: str) -> AsyncGenerator[Redis, None]:  # type: ignore[misc]
    """
    Create a Redis client for testing.

    Automatically skips tests if Redis is not available.
    Clears the test database before and after each test.
    """
    client: Redis = Redis.from_url(test_redis_url, decode_responses=True)  # type: ignore[call-arg]

    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available for testing: {e}")

    await client.flushdb()

    yield client

    try:
        await client.flushdb()
    finally:
        await client.aclose()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    """Memory store exposing materialized views (INDEX_QUERY strategy)."""
    return InMemoryDocumentStore(store_type=BackendType.DOCUMENT, name="documents")


@pytest.fixture
def queryable_store() -> InMemoryDocumentStore:
    """Memory store exposing a primary index and key queries (SCAN_QUERY strategy)."""
    return InMemoryDocumentStore(store_type=BackendType.QUERYABLE, name="queryable")


@pytest.fixture
def key_value_store() -> InMemoryDocumentStore:
    """Memory store exposing plain key-value operations only (FLUSH_ONLY strategy)."""
    return InMemoryDocumentStore(store_type=BackendType.KEY_VALUE, name="kv")


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory store backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("MEMORY_STORE_TYPE", "queryable")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMES", "users,orders")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_runtime_state() -> Generator[None, None, None]:
    """Reset the cache registry, the shared store, the global config and log handlers after each test."""
    yield
    from regioncache.cache.factory import reset_cache_factory
    from regioncache.config import set_config
    from regioncache.observability import JSONFormatter
    from regioncache.observability.logging import ROOT_LOGGER
    from regioncache.store import factory as store_factory

    reset_cache_factory()
    set_config(None)
    store_factory._shared_store = None

    # Handlers installed by configure_logging point at this test's captured stderr
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JSONFormatter):
            logger.removeHandler(handler)
