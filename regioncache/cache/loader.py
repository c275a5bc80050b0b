"""
regioncache - Single-Flight Loading

Collapses concurrent "missing, compute it" requests so a value loader runs
once per miss. Gates are per storage key, created on demand and dropped when
the last waiter leaves.

The caller that runs the loader publishes its result on the gate, and every
caller queued behind it returns that result (None included) without reading
the store or loading again. If the loader failed, nothing is published: the
next waiter re-checks the cache and runs the loader itself, so no waiter
ever observes a placeholder.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from ..errors import LoadError
from .interface import ValueLoader, ValueWrapper

logger = logging.getLogger(__name__)


class _Gate:
    __slots__ = ("lock", "users", "result")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0
        # Set once a load through this gate succeeded
        self.result: ValueWrapper | None = None


class SingleFlightLoader:
    """Per-key mutual exclusion around compute-if-missing."""

    def __init__(self) -> None:
        self._gates: dict[str, _Gate] = {}
        self.loads = 0

    @property
    def in_flight(self) -> int:
        """Number of keys with a load running or queued."""
        return len(self._gates)

    @asynccontextmanager
    async def gate(self, key: str) -> AsyncIterator[_Gate]:
        """Hold the gate for ``key``."""
        gate = self._gates.get(key)
        if gate is None:
            gate = self._gates[key] = _Gate()
        gate.users += 1
        try:
            async with gate.lock:
                yield gate
        finally:
            gate.users -= 1
            if gate.users == 0:
                del self._gates[key]

    async def load(
        self,
        key: str,
        lookup: Callable[[], Awaitable[ValueWrapper | None]],
        loader: ValueLoader,
        store: Callable[[Any], Awaitable[None]],
        recheck: Callable[[], Awaitable[ValueWrapper | None]] | None = None,
    ) -> Any:
        """
        Return the cached value for ``key`` or compute, store and return it.

        Args:
            key: Gate key (the storage key)
            lookup: Reads the current entry
            loader: Computes the value; may be sync or return an awaitable
            store: Persists a freshly loaded value
            recheck: Read used after acquiring the gate (defaults to ``lookup``)

        Raises:
            LoadError: If ``loader`` raises (cause chained)
        """
        found = await lookup()
        if found is not None:
            return found.value

        async with self.gate(key) as gate:
            if gate.result is not None:
                return gate.result.value

            # Double-check: another caller may have loaded while we waited
            found = await (recheck or lookup)()
            if found is not None:
                return found.value

            try:
                value = loader()
                if inspect.isawaitable(value):
                    value = await value
            except Exception as e:
                logger.warning(
                    f"Value loader failed for key '{key}': {e}",
                    extra={"key": key, "error": str(e)},
                )
                raise LoadError(key, e) from e

            self.loads += 1
            await store(value)
            gate.result = ValueWrapper(value)
            return value
