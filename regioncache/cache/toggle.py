"""
regioncache - Enable/Disable Decorator

Wraps any cache with a runtime switch. While disabled:
- get, get_as and get_or_load behave as a permanent miss (get_or_load just
  runs the loader and returns its result without caching it)
- put and put_if_absent are no-ops (put of None still evicts); put_if_absent
  returns ValueWrapper(None) since nothing was inserted
- evict and clear keep operating on real storage, so a disabled cache does
  not mask writes and deletes made by other processes on the same store

Attribute reads and writes the decorator does not define itself (ttl,
allow_flush, store, ...) are forwarded to the wrapped cache.
"""

import inspect
import logging
from typing import Any

from ..errors import LoadError
from .interface import CacheInterface, ValueLoader, ValueWrapper

logger = logging.getLogger(__name__)


class ToggleableCache(CacheInterface):
    """Cache decorator adding enable()/disable()."""

    def __init__(self, cache: CacheInterface, enabled: bool = True):
        self._cache = cache
        self._enabled = enabled

    @property
    def name(self) -> str:
        return self._cache.name

    @property
    def wrapped(self) -> CacheInterface:
        """The decorated cache."""
        return self._cache

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True
        logger.info("Cache '%s' enabled", self.name, extra={"region": self.name})

    def disable(self) -> None:
        self._enabled = False
        logger.info("Cache '%s' disabled", self.name, extra={"region": self.name})

    def __getattr__(self, attribute: str) -> Any:
        # Engine-specific attributes (store, ttl, strategy, open, ...) pass through
        if attribute == "_cache":
            raise AttributeError(attribute)
        return getattr(self._cache, attribute)

    def __setattr__(self, attribute: str, value: Any) -> None:
        # Private state and this decorator's own properties stay here, settings (ttl, allow_flush, ...) go to the engine
        if attribute.startswith("_") or hasattr(type(self), attribute):
            object.__setattr__(self, attribute, value)
        else:
            setattr(self._cache, attribute, value)

    async def get(self, key: Any) -> ValueWrapper | None:
        if not self._enabled:
            return None
        return await self._cache.get(key)

    async def get_as(self, key: Any, as_type: Any = None) -> Any | None:
        if not self._enabled:
            return None
        return await self._cache.get_as(key, as_type)

    async def get_or_load(self, key: Any, loader: ValueLoader) -> Any:
        if self._enabled:
            return await self._cache.get_or_load(key, loader)

        try:
            value = loader()
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            raise LoadError(key, e) from e
        return value

    async def put(self, key: Any, value: Any) -> None:
        if value is None:
            # A null put is a removal, which is never masked
            await self._cache.evict(key)
            return
        if self._enabled:
            await self._cache.put(key, value)

    async def put_if_absent(self, key: Any, value: Any) -> ValueWrapper | None:
        if not self._enabled:
            # Nothing is written, so never claim the insert; report it like a lost race
            return ValueWrapper(None)
        return await self._cache.put_if_absent(key, value)

    async def evict(self, key: Any) -> None:
        await self._cache.evict(key)

    async def clear(self) -> int:
        return await self._cache.clear()

    async def get_stats(self) -> dict[str, Any]:
        stats = await self._cache.get_stats()
        stats["enabled"] = self._enabled
        return stats

    async def close(self) -> None:
        await self._cache.close()

    def __repr__(self) -> str:
        return f"ToggleableCache({self._cache!r}, enabled={self._enabled})"
