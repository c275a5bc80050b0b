"""
regioncache - Redis Document Store

Asynchronous Redis adapter exposing the QUERYABLE capability tier:
- Documents are plain string values, TTL applied via EX seconds
- insert() uses SET NX so the insert decision is atomic server-side
- The keyspace is its own primary index; key queries use SCAN MATCH
- flush() issues FLUSHDB, which wipes the whole logical database

Requires: redis>=5.0 with asyncio support

Example:
    store = RedisDocumentStore(redis_url="redis://localhost:6379/0")
    await store.upsert(Document(id="cache:users:42", content='{"name":"ada"}', expiry=60))
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ...errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)
from ..interface import BackendType, Document, DocumentStore, KeyQuery

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4+)
    from redis.asyncio import Redis
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import RedisError
    from redis.exceptions import TimeoutError as RedisTimeoutError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

_GLOB_SPECIAL = "\\*?[]"


def escape_glob(text: str) -> str:
    """Escape Redis glob metacharacters so ``text`` matches literally."""
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in text)


class RedisDocumentStore(DocumentStore):
    """
    Redis document store.

    Notes:
    - Store errors are translated: timeouts -> StoreTimeoutError,
      connection failures -> StoreConnectionError, anything else -> StoreError.
    - SCAN is non-blocking and may return a key more than once; results are de-duplicated.
    """

    def __init__(
        self,
        redis_url: str,
        max_connections: int = 10,
        socket_timeout: int = 5,
        scan_count: int = 1000,
        name: str = "redis",
    ) -> None:
        """
        Initialize Redis document store.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
            scan_count: COUNT hint for SCAN iterations
            name: Store name used in logs and errors
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        self.name = name
        self.scan_count = scan_count

        # Lazy connection; connects on first command
        self._client = Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    @property
    def store_type(self) -> BackendType:
        return BackendType.QUERYABLE

    @asynccontextmanager
    async def _translate_errors(self, operation: str, **context: object) -> AsyncIterator[None]:
        try:
            yield
        except RedisTimeoutError as e:
            raise StoreTimeoutError(
                f"Redis {operation} timed out: {e}",
                details={"store": self.name, "operation": operation, **context},
            ) from e
        except RedisConnectionError as e:
            raise StoreConnectionError(
                f"Redis unavailable during {operation}: {e}",
                details={"store": self.name, "operation": operation, **context},
            ) from e
        except RedisError as e:
            raise StoreError(
                f"Redis {operation} failed: {e}",
                details={"store": self.name, "operation": operation, **context},
            ) from e

    @staticmethod
    def _ex(expiry: int) -> int | None:
        """0 or negative -> no expiry."""
        return expiry if expiry > 0 else None

    # ------------ Key-value ------------

    async def get(self, document_id: str) -> Document | None:
        async with self._translate_errors("get", id=document_id):
            pipe = self._client.pipeline(transaction=False)
            pipe.get(document_id)
            pipe.ttl(document_id)
            content, ttl = await pipe.execute()
        if content is None:
            return None
        return Document(id=document_id, content=content, expiry=max(0, int(ttl)))

    async def upsert(self, document: Document) -> None:
        async with self._translate_errors("upsert", id=document.id):
            await self._client.set(name=document.id, value=document.content, ex=self._ex(document.expiry))

    async def insert(self, document: Document) -> None:
        async with self._translate_errors("insert", id=document.id):
            created = await self._client.set(
                name=document.id,
                value=document.content,
                ex=self._ex(document.expiry),
                nx=True,
            )
        if not created:
            raise DocumentExistsError(document.id)

    async def remove(self, document_id: str) -> None:
        async with self._translate_errors("remove", id=document_id):
            deleted = await self._client.delete(document_id)
        if not deleted:
            raise DocumentNotFoundError(document_id)

    async def exists(self, document_id: str) -> bool:
        async with self._translate_errors("exists", id=document_id):
            return bool(await self._client.exists(document_id))

    async def flush(self) -> None:
        async with self._translate_errors("flush"):
            await self._client.flushdb()
        logger.warning(
            "Flushed Redis database for store '%s'",
            self.name,
            extra={"store": self.name},
        )

    # ------------ Index / query ------------

    async def create_primary_index(self) -> None:
        # The Redis keyspace is always enumerable, there is nothing to build
        logger.debug("Primary index requested on Redis store '%s', keyspace already indexed", self.name)

    async def query_keys(self, query: KeyQuery) -> list[str]:
        pattern = f"{escape_glob(query.prefix)}*"
        seen: set[str] = set()
        keys: list[str] = []

        async with self._translate_errors("query_keys", prefix=query.prefix):
            async for key in self._client.scan_iter(match=pattern, count=self.scan_count):
                if key in seen:
                    continue
                seen.add(key)
                keys.append(key)
                if query.limit is not None and len(keys) >= query.limit:
                    break

        return keys

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            await self._client.aclose()
            logger.info("Closed Redis store '%s'", self.name)
        finally:
            # Ensure pool disconnect
            await self._client.connection_pool.disconnect()
