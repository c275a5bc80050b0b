"""
regioncache - Store Factory

Builds the backing document store from configuration. One store handle is
shared by every region cache that targets it.

Backend selection: STORE_BACKEND=memory|redis|sql
- Defaults to redis when REDIS_URL is set, memory otherwise
- redis and sql backends are imported lazily to avoid hard dependencies
"""

from __future__ import annotations

import logging

from ..config import StoreBackend, StoreConfig, get_config
from ..errors import ConfigurationError
from .backends.memory import InMemoryDocumentStore
from .interface import DocumentStore

logger = logging.getLogger(__name__)

_shared_store: DocumentStore | None = None


def _create_redis_store(config: StoreConfig) -> DocumentStore:
    """Construct a redis store with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when STORE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    try:
        from .backends.redis import RedisDocumentStore
    except ImportError as e:
        logger.error(
            "Redis store selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis store selected but redis client is unavailable. Install with: pip install 'redis>=5.0.0'",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisDocumentStore(
        redis_url=config.redis_url,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def _create_sql_store(config: StoreConfig) -> DocumentStore:
    """Construct a SQL store with lazy import."""
    try:
        from .backends.sql import SqlDocumentStore
    except ImportError as e:
        logger.error(
            "SQL store selected but SQLAlchemy async support is not installed",
            extra={"package": "sqlalchemy[asyncio], aiosqlite", "error": str(e)},
        )
        raise ConfigurationError(
            "SQL store selected but SQLAlchemy is unavailable. Install with: pip install 'sqlalchemy[asyncio]' aiosqlite",
            details={"package": "sqlalchemy", "error": str(e), "backend": "sql"},
        ) from e

    return SqlDocumentStore(url=config.sql_url)


def create_store(config: StoreConfig | None = None) -> DocumentStore:
    """
    Create a new backing store from configuration.

    Args:
        config: Store configuration (uses global config if not provided)

    Returns:
        Configured document store

    Raises:
        ConfigurationError: If the backend is unknown or unavailable
    """
    if config is None:
        config = get_config().store

    logger.info("Creating %s document store", config.backend, extra={"backend": str(config.backend)})

    if config.backend == StoreBackend.MEMORY:
        return InMemoryDocumentStore(store_type=config.memory_type)
    if config.backend == StoreBackend.REDIS:
        return _create_redis_store(config)
    if config.backend == StoreBackend.SQL:
        return _create_sql_store(config)

    raise ConfigurationError(
        f"Unknown store backend: {config.backend}",
        details={"backend": str(config.backend), "supported": [b.value for b in StoreBackend]},
    )


def get_store(config: StoreConfig | None = None) -> DocumentStore:
    """
    Return the shared store, creating it on first use.

    Args:
        config: Store configuration for first-time creation (global config if not provided)
    """
    global _shared_store

    if _shared_store is None:
        _shared_store = create_store(config)

    return _shared_store


async def close_store() -> None:
    """Close the shared store, if one was created."""
    global _shared_store

    if _shared_store is None:
        return

    store, _shared_store = _shared_store, None
    await store.close()
    logger.info("Closed shared document store '%s'", store.name)
