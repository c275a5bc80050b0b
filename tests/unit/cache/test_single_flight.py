"""
regioncache - Single-Flight Loading Tests

Concurrent get_or_load calls for one key run the loader once; loader
failures surface as LoadError and leave nothing cached.
"""

import asyncio

import pytest

from regioncache.cache.loader import SingleFlightLoader
from regioncache.cache.region import RegionCache
from regioncache.errors import LoadError, NotSerializableError
from regioncache.store import InMemoryDocumentStore


class TestGetOrLoad:
    """Test suite for RegionCache.get_or_load."""

    @pytest.fixture
    def cache(self, document_store: InMemoryDocumentStore) -> RegionCache:
        return RegionCache("users", document_store)

    async def test_loads_and_caches(self, cache: RegionCache) -> None:
        calls = 0

        def loader() -> dict[str, str]:
            nonlocal calls
            calls += 1
            return {"name": "ada"}

        assert await cache.get_or_load("k", loader) == {"name": "ada"}
        assert await cache.get_or_load("k", loader) == {"name": "ada"}
        assert calls == 1
        assert (await cache.get("k")).value == {"name": "ada"}  # type: ignore[union-attr]

    async def test_async_loader(self, cache: RegionCache) -> None:
        async def loader() -> int:
            await asyncio.sleep(0)
            return 7

        assert await cache.get_or_load("k", loader) == 7

    async def test_cached_value_skips_loader(self, cache: RegionCache) -> None:
        await cache.put("k", "cached")

        def loader() -> str:
            raise AssertionError("loader must not run")

        assert await cache.get_or_load("k", loader) == "cached"

    async def test_concurrent_callers_run_loader_once(self, cache: RegionCache) -> None:
        calls = 0

        async def loader() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return "computed"

        results = await asyncio.gather(*(cache.get_or_load("k", loader) for _ in range(20)))

        assert results == ["computed"] * 20
        assert calls == 1
        assert cache.loader.in_flight == 0

        stats = await cache.get_stats()
        assert stats["loads"] == 1

    async def test_different_keys_load_independently(self, cache: RegionCache) -> None:
        started: list[str] = []
        release = asyncio.Event()

        def loader_for(key: str):
            async def loader() -> str:
                started.append(key)
                await release.wait()
                return key

            return loader

        tasks = [asyncio.create_task(cache.get_or_load(k, loader_for(k))) for k in ("a", "b")]
        await asyncio.sleep(0.01)
        assert sorted(started) == ["a", "b"]

        release.set()
        assert await asyncio.gather(*tasks) == ["a", "b"]

    async def test_loader_failure_raises_load_error(self, cache: RegionCache) -> None:
        def loader() -> str:
            raise RuntimeError("backend down")

        with pytest.raises(LoadError) as exc_info:
            await cache.get_or_load("k", loader)

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.key == "cache:users:k"
        assert await cache.get("k") is None

    async def test_waiter_retries_after_failed_load(self, cache: RegionCache) -> None:
        calls = 0

        async def loader() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.02)
            if calls == 1:
                raise RuntimeError("first attempt fails")
            return "second"

        first, second = await asyncio.gather(
            cache.get_or_load("k", loader),
            cache.get_or_load("k", loader),
            return_exceptions=True,
        )

        assert isinstance(first, LoadError)
        assert second == "second"
        assert calls == 2
        assert (await cache.get("k")).value == "second"  # type: ignore[union-attr]

    async def test_loader_returning_none_caches_nothing(self, cache: RegionCache) -> None:
        calls = 0

        def loader() -> None:
            nonlocal calls
            calls += 1

        # Sequential calls: nothing is cached, so each call loads again
        assert await cache.get_or_load("k", loader) is None
        assert await cache.get_or_load("k", loader) is None
        assert calls == 2

    async def test_concurrent_callers_share_none_result(self, cache: RegionCache) -> None:
        calls = 0

        async def loader() -> None:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)

        results = await asyncio.gather(*(cache.get_or_load("k", loader) for _ in range(5)))

        assert results == [None] * 5
        assert calls == 1
        assert await cache.get("k") is None

    async def test_waiters_receive_published_result(self) -> None:
        class ForgetfulStore(InMemoryDocumentStore):
            async def upsert(self, document):  # type: ignore[no-untyped-def]
                # Simulates an entry expiring right after it was written
                return None

        cache = RegionCache("users", ForgetfulStore())
        calls = 0

        async def loader() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return "computed"

        results = await asyncio.gather(*(cache.get_or_load("k", loader) for _ in range(3)))

        assert results == ["computed"] * 3
        assert calls == 1

    async def test_miss_counted_once(self, cache: RegionCache) -> None:
        assert await cache.get_or_load("k", lambda: "v") == "v"

        stats = await cache.get_stats()
        assert stats["misses"] == 1
        assert stats["hits"] == 0

        assert await cache.get_or_load("k", lambda: "w") == "v"
        stats = await cache.get_stats()
        assert stats["misses"] == 1
        assert stats["hits"] == 1

    async def test_concurrent_misses_counted_per_caller(self, cache: RegionCache) -> None:
        async def loader() -> str:
            await asyncio.sleep(0.02)
            return "v"

        await asyncio.gather(*(cache.get_or_load("k", loader) for _ in range(4)))

        stats = await cache.get_stats()
        assert stats["misses"] == 4
        assert stats["hits"] == 0

    async def test_unserializable_loaded_value(self, cache: RegionCache) -> None:
        with pytest.raises(NotSerializableError):
            await cache.get_or_load("k", lambda: object())
        assert cache.loader.in_flight == 0


class TestSingleFlightLoader:
    """Gate bookkeeping."""

    async def test_gates_are_dropped(self) -> None:
        loader = SingleFlightLoader()

        async with loader.gate("k"):
            assert loader.in_flight == 1

        assert loader.in_flight == 0

    async def test_gate_released_on_error(self) -> None:
        loader = SingleFlightLoader()

        with pytest.raises(RuntimeError):
            async with loader.gate("k"):
                raise RuntimeError("boom")

        assert loader.in_flight == 0
