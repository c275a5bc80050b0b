"""
regioncache - Region Caches over Shared Document Stores

Named cache regions with per-region TTL, atomic insert-if-absent,
single-flight loading and scoped clearing on top of a backing document
store shared with other regions and other consumers.
"""

__version__ = "1.0.0"

from .cache import (
    CacheInterface,
    CacheTemplate,
    EvictionStrategy,
    RegionCache,
    ToggleableCache,
    ValueWrapper,
    get_cache,
    new_region_cache,
)
from .runtime import cache_runtime, initialize_runtime, shutdown_runtime

__all__ = [
    "CacheInterface",
    "CacheTemplate",
    "EvictionStrategy",
    "RegionCache",
    "ToggleableCache",
    "ValueWrapper",
    "get_cache",
    "new_region_cache",
    "cache_runtime",
    "initialize_runtime",
    "shutdown_runtime",
]
