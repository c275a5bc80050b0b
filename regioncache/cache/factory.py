"""
regioncache - Cache Factory

Canonical registry for region caches. Every cache is built from a
CacheTemplate (shared store + TTL + clearing policy) and registered by name.

Key points:
- Static caches: names listed in CACHE_NAMES are created by initialize_caches()
- Dynamic caches: unknown names are created on first get_cache() from the
  default template, unless CACHE_DYNAMIC=false
- Creation is serialized so concurrent get_cache() calls build one instance

Examples:
    from regioncache.cache.factory import CacheTemplate, get_cache, initialize_caches

    # Uses env-configured store and cache settings
    await initialize_caches()
    users = await get_cache("users")

    # Or explicitly supply a template (e.g., for tests)
    template = CacheTemplate(store=InMemoryDocumentStore(), ttl_seconds=60)
    await initialize_caches(template, names=["users", "orders"])
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..config import CacheConfig, get_config
from ..errors import CacheNotFoundError
from ..store.factory import get_store
from ..store.interface import DocumentStore
from .interface import CacheInterface
from .keys import KeyCodec
from .region import RegionCache
from .toggle import ToggleableCache

logger = logging.getLogger(__name__)

# Global cache instances registry
_cache_instances: dict[str, CacheInterface] = {}
_default_template: CacheTemplate | None = None
_dynamic_caches: bool | None = None
_registry_lock: asyncio.Lock | None = None


async def new_region_cache(
    name: str | None,
    store: DocumentStore,
    ttl: int = 0,
    *,
    key_prefix: str = "cache",
    key_delimiter: str = ":",
    always_flush: bool = False,
    allow_flush: bool = False,
    eviction_batch_size: int = 100,
) -> ToggleableCache:
    """
    Build and open a region cache wrapped in an enable/disable switch.

    Raises:
        UnsupportedBackendError: If the store's capability tier is unknown
        IndexProvisioningError: If the region view or index cannot be created
    """
    engine = RegionCache(
        name,
        store,
        ttl,
        codec=KeyCodec(key_prefix, key_delimiter),
        always_flush=always_flush,
        allow_flush=allow_flush,
        eviction_batch_size=eviction_batch_size,
    )
    await engine.open()
    return ToggleableCache(engine)


@dataclass
class CacheTemplate:
    """Settings shared by every cache built from it."""

    store: DocumentStore
    ttl_seconds: int = 0
    always_flush: bool = False
    allow_flush: bool = False
    key_prefix: str = "cache"
    key_delimiter: str = ":"
    eviction_batch_size: int = 100

    def __post_init__(self) -> None:
        if self.store is None:
            raise ValueError("A non-null store is required for all cache templates")
        if self.ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")

    @classmethod
    def from_config(cls, config: CacheConfig, store: DocumentStore) -> CacheTemplate:
        return cls(
            store=store,
            ttl_seconds=config.ttl_seconds,
            always_flush=config.always_flush,
            allow_flush=config.allow_flush,
            key_prefix=config.key_prefix,
            key_delimiter=config.key_delimiter,
            eviction_batch_size=config.eviction_batch_size,
        )

    async def build(self, name: str | None) -> ToggleableCache:
        """Build and open a cache called ``name``."""
        return await new_region_cache(
            name,
            self.store,
            self.ttl_seconds,
            key_prefix=self.key_prefix,
            key_delimiter=self.key_delimiter,
            always_flush=self.always_flush,
            allow_flush=self.allow_flush,
            eviction_batch_size=self.eviction_batch_size,
        )


def _lock() -> asyncio.Lock:
    global _registry_lock
    if _registry_lock is None:
        _registry_lock = asyncio.Lock()
    return _registry_lock


def _template() -> CacheTemplate:
    """Default template, built from the global configuration on first use."""
    global _default_template
    if _default_template is None:
        _default_template = CacheTemplate.from_config(get_config().cache, get_store())
    return _default_template


def _dynamic_allowed() -> bool:
    if _dynamic_caches is None:
        return get_config().cache.dynamic_caches
    return _dynamic_caches


def configure_registry(template: CacheTemplate | None = None, dynamic_caches: bool | None = None) -> None:
    """
    Override the default template and/or the dynamic creation policy.

    Args:
        template: Template for caches created without an explicit one
        dynamic_caches: Whether unknown names are created on demand (None = from config)
    """
    global _default_template, _dynamic_caches
    if template is not None:
        _default_template = template
    _dynamic_caches = dynamic_caches


async def create_cache(name: str | None, template: CacheTemplate | None = None) -> CacheInterface:
    """
    Create (or return the existing) cache called ``name``.

    Args:
        name: Cache/region name
        template: Template to build from (default template if not provided)

    Returns:
        The registered cache
    """
    key = KeyCodec.normalize_region(name)

    async with _lock():
        if key in _cache_instances:
            logger.debug("Returning existing cache instance: %s", key)
            return _cache_instances[key]

        template = template or _template()
        logger.info(
            "Creating cache instance '%s' on store '%s'",
            key,
            template.store.name,
            extra={"cache_name": key, "store": template.store.name, "ttl": template.ttl_seconds},
        )

        cache = await template.build(key)
        _cache_instances[key] = cache

    logger.info("Cache instance '%s' created successfully", key, extra={"cache_name": key})
    return cache


async def initialize_caches(
    template: CacheTemplate | None = None,
    names: list[str] | None = None,
) -> list[str]:
    """
    Create the statically declared caches.

    Args:
        template: Template for these caches; also becomes the default template
        names: Cache names (defaults to CACHE_NAMES from configuration)

    Returns:
        Names of the caches now registered
    """
    if template is not None:
        configure_registry(template, _dynamic_caches)
    if names is None:
        names = get_config().cache.cache_names

    for name in dict.fromkeys(names):
        if name is not None:
            await create_cache(name, template)

    return list_cache_instances()


async def get_cache(name: str | None) -> CacheInterface:
    """
    Get a cache by name.

    Unknown names are created from the default template when dynamic caches
    are allowed.

    Raises:
        CacheNotFoundError: If the cache is unknown and dynamic creation is disabled
    """
    key = KeyCodec.normalize_region(name)
    cache = _cache_instances.get(key)
    if cache is not None:
        return cache

    if not _dynamic_allowed():
        raise CacheNotFoundError(key)

    logger.debug("Cache instance '%s' not found, creating new instance", key)
    return await create_cache(key)


async def close_all_caches() -> None:
    """
    Close all cache instances and forget them.

    The shared store is not closed here; see regioncache.store.factory.close_store().
    """
    if not _cache_instances:
        logger.debug("No cache instances to close")
        return

    logger.info("Closing %d cache instance(s)...", len(_cache_instances))

    for name, cache in list(_cache_instances.items()):
        try:
            await cache.close()
            logger.info("Closed cache instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache instance '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()
    logger.info("All cache instances closed")


def reset_cache_factory() -> None:
    """
    Reset the registry: forget instances, the default template and the dynamic policy.

    Does NOT call close() on instances - use close_all_caches() for proper cleanup.
    """
    global _default_template, _dynamic_caches, _registry_lock
    count = len(_cache_instances)
    _cache_instances.clear()
    _default_template = None
    _dynamic_caches = None
    _registry_lock = None
    logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


def list_cache_instances() -> list[str]:
    """
    List all registered cache instance names.

    Returns:
        List of cache instance names
    """
    return list(_cache_instances.keys())
