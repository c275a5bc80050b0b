"""
regioncache - Scoped Eviction Tests

EvictionExecutor enumeration and removal, independent of RegionCache.
"""

import pytest

from regioncache.cache.eviction import EvictionExecutor
from regioncache.cache.keys import KeyCodec
from regioncache.cache.provisioning import IndexProvisioner
from regioncache.cache.strategy import EvictionStrategy
from regioncache.errors import DestructiveOperationRefused, DocumentNotFoundError, StoreOperationNotSupported
from regioncache.store import Document, InMemoryDocumentStore


@pytest.fixture
def codec() -> KeyCodec:
    return KeyCodec()


@pytest.fixture
def executor(codec: KeyCodec) -> EvictionExecutor:
    return EvictionExecutor(codec, IndexProvisioner(codec), batch_size=2)


async def _seed(store: InMemoryDocumentStore, codec: KeyCodec) -> None:
    for region in ("users", "orders"):
        for i in range(3):
            await store.upsert(Document(id=codec.encode(region, i), content=str(i)))
    await store.upsert(Document(id="unrelated", content="1"))


class TestEvictionExecutor:
    """Test suite for EvictionExecutor."""

    async def test_enumerate_index_query(
        self, executor: EvictionExecutor, codec: KeyCodec, document_store: InMemoryDocumentStore
    ) -> None:
        await executor.provisioner.ensure_view(document_store)
        await _seed(document_store, codec)

        ids = await executor.enumerate(document_store, "users", EvictionStrategy.INDEX_QUERY)
        assert sorted(ids) == ["cache:users:0", "cache:users:1", "cache:users:2"]

    async def test_enumerate_scan_query(
        self, executor: EvictionExecutor, codec: KeyCodec, queryable_store: InMemoryDocumentStore
    ) -> None:
        await queryable_store.create_primary_index()
        await _seed(queryable_store, codec)

        ids = await executor.enumerate(queryable_store, "orders", EvictionStrategy.SCAN_QUERY)
        assert ids == ["cache:orders:0", "cache:orders:1", "cache:orders:2"]

    async def test_enumerate_flush_only_is_invalid(
        self, executor: EvictionExecutor, key_value_store: InMemoryDocumentStore
    ) -> None:
        with pytest.raises(ValueError):
            await executor.enumerate(key_value_store, "users", EvictionStrategy.FLUSH_ONLY)

    async def test_clear_removes_only_region(
        self, executor: EvictionExecutor, codec: KeyCodec, queryable_store: InMemoryDocumentStore
    ) -> None:
        await queryable_store.create_primary_index()
        await _seed(queryable_store, codec)

        assert await executor.clear(queryable_store, "users", EvictionStrategy.SCAN_QUERY) == 3
        assert await executor.enumerate(queryable_store, "users", EvictionStrategy.SCAN_QUERY) == []
        assert await queryable_store.get("cache:orders:0") is not None
        assert await queryable_store.get("unrelated") is not None

    async def test_clear_skips_entries_removed_concurrently(
        self, executor: EvictionExecutor, codec: KeyCodec
    ) -> None:
        class RacingStore(InMemoryDocumentStore):
            async def remove(self, document_id: str) -> None:
                if document_id.endswith(":1"):
                    raise DocumentNotFoundError(document_id)
                await super().remove(document_id)

        store = RacingStore()
        await executor.provisioner.ensure_view(store)
        await _seed(store, codec)

        assert await executor.clear(store, "users", EvictionStrategy.INDEX_QUERY) == 2

    async def test_clear_query_failure_propagates(
        self, executor: EvictionExecutor, key_value_store: InMemoryDocumentStore
    ) -> None:
        with pytest.raises(StoreOperationNotSupported):
            await executor.clear(key_value_store, "users", EvictionStrategy.SCAN_QUERY)

    async def test_flush_refused(self, executor: EvictionExecutor, key_value_store: InMemoryDocumentStore) -> None:
        await key_value_store.upsert(Document(id="cache:users:1", content="1"))

        with pytest.raises(DestructiveOperationRefused) as exc_info:
            await executor.clear(key_value_store, "users", EvictionStrategy.FLUSH_ONLY)

        assert exc_info.value.details == {"region": "users", "store": "kv"}
        assert await key_value_store.get("cache:users:1") is not None

    async def test_flush_allowed(self, executor: EvictionExecutor, key_value_store: InMemoryDocumentStore) -> None:
        await key_value_store.upsert(Document(id="cache:users:1", content="1"))

        removed = await executor.clear(key_value_store, "users", EvictionStrategy.FLUSH_ONLY, allow_flush=True)

        assert removed == 0
        assert await key_value_store.get("cache:users:1") is None

    def test_invalid_batch_size(self, codec: KeyCodec) -> None:
        with pytest.raises(ValueError):
            EvictionExecutor(codec, IndexProvisioner(codec), batch_size=0)
