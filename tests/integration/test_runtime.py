"""
regioncache - Runtime Lifecycle Integration Tests

Startup from configuration, logging setup and shutdown.
"""

import json
import logging
from pathlib import Path

import pytest

from regioncache import cache_runtime, get_cache, initialize_runtime, shutdown_runtime
from regioncache.cache.factory import list_cache_instances
from regioncache.config import CacheConfig, RegionCacheConfig, StoreConfig, get_config
from regioncache.errors import CacheNotFoundError, IndexProvisioningError, StoreConnectionError
from regioncache.observability import JSONFormatter, configure_logging
from regioncache.store import BackendType, DesignDocument, InMemoryDocumentStore
from regioncache.store import factory as store_factory


@pytest.fixture
def config() -> RegionCacheConfig:
    return RegionCacheConfig(
        environment="test",
        log_level="DEBUG",
        store=StoreConfig(memory_type=BackendType.DOCUMENT),
        cache=CacheConfig(ttl_seconds=60, cache_names=["users", "orders"], dynamic_caches=False),
    )


class TestRuntime:
    """Test suite for runtime startup and shutdown."""

    async def test_initialize_and_shutdown(self, config: RegionCacheConfig) -> None:
        names = await initialize_runtime(config)

        assert names == ["users", "orders"]
        assert get_config() is config

        users = await get_cache("users")
        await users.put("k", "v")
        assert (await users.get("k")).value == "v"  # type: ignore[union-attr]

        with pytest.raises(CacheNotFoundError):
            await get_cache("sessions")

        await shutdown_runtime()
        assert list_cache_instances() == []
        assert store_factory._shared_store is None

    async def test_context_manager(self, config: RegionCacheConfig) -> None:
        async with cache_runtime(config) as names:
            assert names == ["users", "orders"]
            orders = await get_cache("orders")
            assert orders.ttl == 60

        assert list_cache_instances() == []

    async def test_shutdown_without_initialize(self) -> None:
        await shutdown_runtime()

    async def test_initialize_from_environment(self, mock_env_memory: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)

        async with cache_runtime() as names:
            assert names == ["users", "orders"]
            cache = await get_cache("users")
            assert cache.ttl == 3600
            assert cache.store.store_type is BackendType.QUERYABLE

    async def test_startup_failure_propagates(self, config: RegionCacheConfig) -> None:
        class BrokenStore(InMemoryDocumentStore):
            async def insert_design_document(self, design_document: DesignDocument) -> None:
                raise StoreConnectionError("store unreachable")

        store_factory._shared_store = BrokenStore()

        with pytest.raises(IndexProvisioningError):
            await initialize_runtime(config)


class TestLogging:
    """JSON log formatting."""

    def test_json_formatter_includes_extras(self) -> None:
        record = logging.LogRecord("regioncache.cache", logging.INFO, __file__, 1, "cleared %d", (3,), None)
        record.region = "users"

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "cleared 3"
        assert payload["level"] == "INFO"
        assert payload["region"] == "users"
        assert "args" not in payload

    def test_configure_logging_is_idempotent(self) -> None:
        logger = configure_logging("DEBUG")
        configure_logging("INFO")

        handlers = [h for h in logger.handlers if isinstance(h.formatter, JSONFormatter)]
        assert len(handlers) == 1
        assert logger.level == logging.INFO
