"""
regioncache - Runtime Lifecycle

Startup and shutdown for applications embedding regioncache:

    async with cache_runtime():
        users = await get_cache("users")
        ...
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .cache.factory import CacheTemplate, close_all_caches, configure_registry, initialize_caches
from .config import RegionCacheConfig, load_config, set_config
from .observability import configure_logging
from .store.factory import close_store, get_store

logger = logging.getLogger(__name__)

_initialized = False


async def initialize_runtime(config: RegionCacheConfig | None = None) -> list[str]:
    """
    Initialize logging, the shared store and the statically declared caches.

    Args:
        config: Explicit configuration (loaded from the environment if not provided)

    Returns:
        Names of the caches registered at startup
    """
    global _initialized

    if config is None:
        config = load_config()
    else:
        set_config(config)

    configure_logging(config.log_level)
    logger.info("Initializing regioncache runtime (environment: %s)", config.environment)

    try:
        template = CacheTemplate.from_config(config.cache, get_store(config.store))
        configure_registry(template, config.cache.dynamic_caches)
        names = await initialize_caches(template, config.cache.cache_names)
    except Exception as e:
        logger.error(f"Failed to initialize regioncache runtime: {e}", exc_info=True)
        raise

    _initialized = True
    logger.info(
        "regioncache runtime initialized with %d static cache(s)",
        len(names),
        extra={"caches": names, "store": template.store.name, "dynamic_caches": config.cache.dynamic_caches},
    )
    return names


async def shutdown_runtime() -> None:
    """Close every registered cache and the shared store."""
    global _initialized

    if not _initialized:
        return

    logger.info("Shutting down regioncache runtime...")
    await close_all_caches()
    await close_store()
    _initialized = False
    logger.info("regioncache runtime shut down")


@asynccontextmanager
async def cache_runtime(config: RegionCacheConfig | None = None) -> AsyncIterator[list[str]]:
    """Runtime lifespan manager (startup/shutdown)."""
    names = await initialize_runtime(config)
    try:
        yield names
    finally:
        await shutdown_runtime()
