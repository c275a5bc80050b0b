"""
regioncache - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, set_config
from .schemas import (
    CacheConfig,
    Environment,
    LogLevel,
    RegionCacheConfig,
    StoreBackend,
    StoreConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "set_config",
    # Main config
    "RegionCacheConfig",
    # Enums
    "Environment",
    "LogLevel",
    "StoreBackend",
    # Config sections
    "CacheConfig",
    "StoreConfig",
]
