"""
regioncache - Region Cache Engine

One logical cache region on a shared backing document store.

Entries are stored under ``prefix:region:key`` with the region TTL. The
eviction strategy is resolved once per instance (on open(), or lazily on the
first clear()) from the capability tier the store declares.

Example:
    store = InMemoryDocumentStore()
    users = RegionCache("users", store, ttl=600)
    await users.open()
    await users.put(42, {"name": "ada"})
    hit = await users.get(42)   # ValueWrapper({"name": "ada"})
"""

import asyncio
import logging
from typing import Any

from ..errors import DocumentExistsError, DocumentNotFoundError
from ..store.interface import Document, DocumentStore
from .eviction import EvictionExecutor
from .interface import CacheInterface, ValueLoader, ValueWrapper
from .keys import KeyCodec
from .loader import SingleFlightLoader
from .provisioning import IndexProvisioner
from .serialization import ValueCodec
from .strategy import EvictionStrategy, resolve_strategy

logger = logging.getLogger(__name__)


class RegionCache(CacheInterface):
    """
    Region cache engine.

    Features:
    - Key namespacing per region, collision-free across regions
    - Per-region TTL passed through to the store unchanged
    - Atomic insert-if-absent
    - Single-flight get_or_load
    - Scoped clear() that never touches other regions, except through an
      explicitly enabled whole-store flush on KEY_VALUE stores
    """

    def __init__(
        self,
        name: str | None,
        store: DocumentStore,
        ttl: int = 0,
        *,
        codec: KeyCodec | None = None,
        value_codec: ValueCodec | None = None,
        always_flush: bool = False,
        allow_flush: bool = False,
        eviction_batch_size: int = 100,
    ):
        """
        Initialize a region cache.

        Args:
            name: Region name (None or blank = the unnamed region)
            store: Backing document store, shared with other regions
            ttl: Entry TTL in seconds (0 = no expiry)
            codec: Storage key codec
            value_codec: Value serializer
            always_flush: Skip capability probing, clear by flushing the store
            allow_flush: Destructive mode, permit whole-store flush on clear()
            eviction_batch_size: Concurrent deletions per clear() batch
        """
        if store is None:
            raise ValueError("a backing store is required")

        self.codec = codec or KeyCodec()
        self._name = self.codec.validate_region(name)
        self._store = store
        self.ttl = ttl
        self.value_codec = value_codec or ValueCodec()
        self.always_flush = always_flush
        self.allow_flush = allow_flush

        self.provisioner = IndexProvisioner(self.codec)
        self.evictor = EvictionExecutor(self.codec, self.provisioner, batch_size=eviction_batch_size)
        self.loader = SingleFlightLoader()

        self._strategy: EvictionStrategy | None = None
        self._strategy_lock = asyncio.Lock()

        # Stats
        self._hits = 0
        self._misses = 0
        self._puts = 0
        self._evictions = 0
        self._clears = 0

    # ------------ Properties ------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def store(self) -> DocumentStore:
        """The underlying (native) store."""
        return self._store

    @property
    def ttl(self) -> int:
        return self._ttl

    @ttl.setter
    def ttl(self, value: int) -> None:
        if value < 0:
            raise ValueError("ttl must be >= 0")
        self._ttl = int(value)

    @property
    def strategy(self) -> EvictionStrategy | None:
        """Resolved eviction strategy, None before open()."""
        return self._strategy

    # ------------ Lifecycle ------------

    async def open(self) -> EvictionStrategy:
        """Resolve the eviction strategy (idempotent)."""
        if self._strategy is not None:
            return self._strategy

        async with self._strategy_lock:
            if self._strategy is None:
                self._strategy = await resolve_strategy(self._store, self.provisioner, self.always_flush)
                logger.info(
                    "Region cache '%s' opened with strategy %s",
                    self._name,
                    self._strategy.value,
                    extra={"region": self._name, "store": self._store.name, "strategy": self._strategy.value},
                )
        return self._strategy

    async def close(self) -> None:
        # The store is shared, it is closed by whoever created it
        logger.debug("Region cache '%s' closed", self._name, extra={"region": self._name})

    # ------------ Reads ------------

    def _storage_key(self, key: Any) -> str:
        return self.codec.encode(self._name, key)

    async def _read(self, storage_key: str, record: bool = True) -> Document | None:
        document = await self._store.get(storage_key)
        if record:
            if document is None:
                self._misses += 1
            else:
                self._hits += 1
        return document

    async def _lookup(self, storage_key: str, record: bool = True) -> ValueWrapper | None:
        document = await self._read(storage_key, record)
        if document is None:
            return None
        return ValueWrapper(self.value_codec.decode(document.content))

    async def get(self, key: Any) -> ValueWrapper | None:
        return await self._lookup(self._storage_key(key))

    async def get_as(self, key: Any, as_type: Any = None) -> Any | None:
        document = await self._read(self._storage_key(key))
        if document is None:
            return None
        value = self.value_codec.decode(document.content)
        if as_type is None or value is None:
            return value
        return self.value_codec.decode_as(document.content, as_type)

    async def get_or_load(self, key: Any, loader: ValueLoader) -> Any:
        storage_key = self._storage_key(key)
        # The miss is counted by the first read only, the re-check under the gate is not a new request
        return await self.loader.load(
            storage_key,
            lookup=lambda: self._lookup(storage_key),
            loader=loader,
            store=lambda value: self.put(key, value),
            recheck=lambda: self._lookup(storage_key, record=False),
        )

    # ------------ Writes ------------

    async def put(self, key: Any, value: Any) -> None:
        if value is None:
            await self.evict(key)
            return

        document = Document(id=self._storage_key(key), content=self.value_codec.encode(value), expiry=self._ttl)
        await self._store.upsert(document)
        self._puts += 1

    async def put_if_absent(self, key: Any, value: Any) -> ValueWrapper | None:
        """
        Insert a value only if the key is absent.

        The insert decision is atomic in the store. When the key already
        exists, the existing value is fetched with a separate read that is not
        atomic with the insert attempt: if a concurrent evict lands in between,
        the result is ValueWrapper(None) although a value existed a moment ago.

        A None value is stored as a null entry rather than treated as an evict.
        """
        storage_key = self._storage_key(key)
        document = Document(id=storage_key, content=self.value_codec.encode(value), expiry=self._ttl)

        try:
            await self._store.insert(document)
        except DocumentExistsError:
            existing = await self._store.get(storage_key)
            if existing is None:
                logger.debug(
                    "Entry %s vanished between insert conflict and read",
                    storage_key,
                    extra={"region": self._name, "id": storage_key},
                )
                return ValueWrapper(None)
            return ValueWrapper(self.value_codec.decode(existing.content))

        self._puts += 1
        return None

    async def evict(self, key: Any) -> None:
        storage_key = self._storage_key(key)
        try:
            await self._store.remove(storage_key)
            self._evictions += 1
        except DocumentNotFoundError:
            logger.debug("Evict of missing entry %s ignored", storage_key, extra={"region": self._name})

    async def clear(self) -> int:
        strategy = await self.open()
        removed = await self.evictor.clear(self._store, self._name, strategy, allow_flush=self.allow_flush)
        self._clears += 1
        self._evictions += removed
        return removed

    # ------------ Stats ------------

    async def get_stats(self) -> dict[str, Any]:
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "region": self._name,
            "store": self._store.name,
            "store_type": getattr(self._store.store_type, "value", str(self._store.store_type)),
            "strategy": self._strategy.value if self._strategy else None,
            "ttl": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "puts": self._puts,
            "evictions": self._evictions,
            "loads": self.loader.loads,
            "clears": self._clears,
        }

    def __repr__(self) -> str:
        return f"RegionCache(name={self._name!r}, store={self._store.name!r}, ttl={self._ttl})"
