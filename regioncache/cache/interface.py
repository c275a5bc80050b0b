"""
regioncache - Cache Interface

Defines the abstract interface implemented by the region cache engine and
the decorators that wrap it.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

ValueLoader: TypeAlias = Callable[[], Any | Awaitable[Any]]


@dataclass(frozen=True)
class ValueWrapper:
    """
    A cache hit.

    ``ValueWrapper(None)`` means the entry is present with null content, which
    is distinct from a miss (represented by returning None instead of a wrapper).
    """

    value: Any

    def get(self) -> Any:
        return self.value


class CacheInterface(ABC):
    """
    Abstract base class for region caches.

    Every implementation must keep absent (None) distinguishable from
    present-with-null (ValueWrapper(None)).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Region name ("" for the unnamed region)."""

    @abstractmethod
    async def get(self, key: Any) -> ValueWrapper | None:
        """
        Retrieve an entry.

        Args:
            key: Application cache key

        Returns:
            ValueWrapper if the entry exists, None on a miss
        """

    @abstractmethod
    async def get_as(self, key: Any, as_type: Any = None) -> Any | None:
        """
        Retrieve the raw value.

        Args:
            key: Application cache key
            as_type: Optional type the value must validate against

        Returns:
            The value, or None on a miss

        Raises:
            DeserializationError: If the stored content does not match ``as_type``
        """

    @abstractmethod
    async def get_or_load(self, key: Any, loader: ValueLoader) -> Any:
        """
        Return the cached value, computing and storing it with ``loader`` on a miss.

        Concurrent misses for the same key run ``loader`` once.

        Raises:
            LoadError: If the loader fails (cause chained)
        """

    @abstractmethod
    async def put(self, key: Any, value: Any) -> None:
        """
        Store a value with the region TTL. A None value evicts the key.

        Raises:
            NotSerializableError: If the value cannot be serialized
        """

    @abstractmethod
    async def put_if_absent(self, key: Any, value: Any) -> ValueWrapper | None:
        """
        Store a value only if the key is absent.

        Returns:
            None if this call stored the value, otherwise a ValueWrapper with
            the existing value (see the implementation for race semantics)
        """

    @abstractmethod
    async def evict(self, key: Any) -> None:
        """Remove one entry. A missing key is not an error."""

    @abstractmethod
    async def clear(self) -> int:
        """
        Remove every entry of this region.

        Returns:
            Number of entries removed (0 when the whole store was flushed)
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, puts, etc.)
        """

    async def close(self) -> None:
        """Release resources owned by this cache. The shared store is left open."""
