"""
regioncache - Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import RegionCacheConfig

logger = logging.getLogger(__name__)

_config_instance: RegionCacheConfig | None = None


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> RegionCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated RegionCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect store backend: Redis if REDIS_URL is set, else memory
    redis_url = os.getenv("REDIS_URL")
    store_backend = "redis" if redis_url else "memory"

    try:
        config_dict = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "store": {
                "backend": os.getenv("STORE_BACKEND", store_backend),
                "memory_type": os.getenv("MEMORY_STORE_TYPE", "document"),
                "redis_url": redis_url,
                "redis_max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
                "redis_socket_timeout": int(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
                "sql_url": os.getenv("SQL_URL", "sqlite+aiosqlite:///./data/regioncache.db"),
            },
            "cache": {
                "ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", "0")),
                "key_prefix": os.getenv("CACHE_KEY_PREFIX", "cache"),
                "key_delimiter": os.getenv("CACHE_KEY_DELIMITER", ":"),
                "cache_names": [n.strip() for n in os.getenv("CACHE_NAMES", "").split(",") if n.strip()],
                "dynamic_caches": _env_bool("CACHE_DYNAMIC", "true"),
                "always_flush": _env_bool("CACHE_ALWAYS_FLUSH"),
                "allow_flush": _env_bool("CACHE_ALLOW_FLUSH"),
                "eviction_batch_size": int(os.getenv("CACHE_EVICTION_BATCH_SIZE", "100")),
            },
        }
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid numeric configuration value: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = RegionCacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "store_backend": _config_instance.store.backend},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> RegionCacheConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current RegionCacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> RegionCacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded RegionCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def set_config(config: RegionCacheConfig | None) -> None:
    """Install an explicit configuration (or clear it with None). Intended for tests and embedding."""
    global _config_instance
    _config_instance = config
