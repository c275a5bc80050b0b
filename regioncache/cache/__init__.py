"""
regioncache - Cache Module

Region caches on top of a shared backing document store.

- region.py: the region cache engine
- toggle.py: enable/disable decorator
- factory.py: templates and the name -> cache registry
- keys.py, serialization.py: storage key and value codecs
- strategy.py, provisioning.py, eviction.py: scoped clear() machinery
- loader.py: single-flight get_or_load

Usage:
    from regioncache.cache import get_cache

    users = await get_cache("users")
    await users.put("42", {"name": "ada"})
    hit = await users.get("42")
"""

from .factory import (
    CacheTemplate,
    close_all_caches,
    configure_registry,
    create_cache,
    get_cache,
    initialize_caches,
    list_cache_instances,
    new_region_cache,
    reset_cache_factory,
)
from .interface import CacheInterface, ValueWrapper
from .keys import KeyCodec
from .region import RegionCache
from .strategy import EvictionStrategy, classify_store
from .toggle import ToggleableCache

__all__ = [
    # Factory functions
    "new_region_cache",
    "create_cache",
    "get_cache",
    "initialize_caches",
    "configure_registry",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    "CacheTemplate",
    # Interface
    "CacheInterface",
    "ValueWrapper",
    # Engine
    "RegionCache",
    "ToggleableCache",
    "KeyCodec",
    "EvictionStrategy",
    "classify_store",
]
