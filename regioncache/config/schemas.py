"""
regioncache - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is defined here and validated at load time.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..store.interface import BackendType


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Supported backing document stores."""

    MEMORY = "memory"
    REDIS = "redis"
    SQL = "sql"


class StoreConfig(BaseModel):
    """Backing store configuration."""

    backend: StoreBackend = Field(default=StoreBackend.MEMORY, description="Backing store to use")
    memory_type: BackendType = Field(
        default=BackendType.DOCUMENT,
        description="Capability tier exposed by the memory store",
    )

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, validate_default=True, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    # SQL-specific settings (only used when backend=sql)
    sql_url: str = Field(
        default="sqlite+aiosqlite:///./data/regioncache.db",
        description="Async SQLAlchemy database URL",
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == StoreBackend.REDIS and not v:
            raise ValueError("redis_url is required when store backend is 'redis'")
        return v


class CacheConfig(BaseModel):
    """Region cache configuration shared by every cache built from the default template."""

    ttl_seconds: int = Field(default=0, ge=0, description="Entry TTL in seconds (0 = no expiry)")
    key_prefix: str = Field(default="cache", min_length=1, description="First segment of every storage key")
    key_delimiter: str = Field(default=":", min_length=1, description="Separator between storage key segments")
    cache_names: list[str] = Field(default_factory=list, description="Caches created eagerly at startup")
    dynamic_caches: bool = Field(default=True, description="Create unknown caches on first request")
    always_flush: bool = Field(
        default=False,
        description="Skip capability probing and clear regions by flushing the whole store",
    )
    allow_flush: bool = Field(
        default=False,
        description="Destructive mode: permit clear() to flush the entire store when that is the only option",
    )
    eviction_batch_size: int = Field(default=100, ge=1, description="Concurrent deletions per clear() batch")

    @field_validator("cache_names")
    @classmethod
    def validate_cache_names(cls, v: list[str], info: Any) -> list[str]:
        """Region names must not contain the key delimiter."""
        delimiter = info.data.get("key_delimiter", ":")
        for name in v:
            if delimiter in name:
                raise ValueError(f"cache name {name!r} must not contain the key delimiter {delimiter!r}")
        return v


class RegionCacheConfig(BaseModel):
    """Root configuration for regioncache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    store: StoreConfig = Field(default_factory=StoreConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("cache")
    @classmethod
    def validate_flush_in_production(cls, v: CacheConfig, info: Any) -> CacheConfig:
        """Refuse always-flush without destructive mode in production."""
        environment = info.data.get("environment")
        if environment == Environment.PRODUCTION and v.always_flush and not v.allow_flush:
            raise ValueError("always_flush requires allow_flush in production, clear() would always fail")
        return v

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
