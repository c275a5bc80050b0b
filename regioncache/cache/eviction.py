"""
regioncache - Scoped Eviction

Removes every entry of one region using the strategy chosen for its store.

INDEX_QUERY and SCAN_QUERY enumerate only the region's storage keys and never
touch anything else. FLUSH_ONLY has no way to enumerate a region: it flushes
the whole store, destroying every region and any unrelated data sharing it,
and therefore runs only when destructive mode (allow_flush) is enabled.
"""

import asyncio
import logging

from ..errors import DestructiveOperationRefused, DocumentNotFoundError
from ..store.interface import DocumentStore, KeyQuery
from .keys import KeyCodec
from .provisioning import IndexProvisioner
from .strategy import EvictionStrategy

logger = logging.getLogger(__name__)


class EvictionExecutor:
    """Clears a region according to an eviction strategy."""

    def __init__(self, codec: KeyCodec, provisioner: IndexProvisioner, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.codec = codec
        self.provisioner = provisioner
        self.batch_size = batch_size

    async def clear(
        self,
        store: DocumentStore,
        region: str,
        strategy: EvictionStrategy,
        allow_flush: bool = False,
    ) -> int:
        """
        Clear ``region``.

        Returns:
            Number of entries removed (0 after a whole-store flush)

        Raises:
            DestructiveOperationRefused: FLUSH_ONLY strategy without allow_flush
        """
        if strategy is EvictionStrategy.FLUSH_ONLY:
            return await self._flush(store, region, allow_flush)

        ids = await self.enumerate(store, region, strategy)
        removed = await self._remove_all(store, ids)

        logger.info(
            "Cleared %d entries from region '%s'",
            removed,
            region,
            extra={"region": region, "store": store.name, "strategy": strategy.value, "count": removed},
        )
        return removed

    async def enumerate(self, store: DocumentStore, region: str, strategy: EvictionStrategy) -> list[str]:
        """List the storage keys currently belonging to ``region``."""
        if strategy is EvictionStrategy.INDEX_QUERY:
            rows = await store.query_view(
                self.provisioner.design_document,
                self.provisioner.view_name,
                key=region,
                consistent=True,
            )
            return [row.id for row in rows]

        if strategy is EvictionStrategy.SCAN_QUERY:
            return await store.query_keys(KeyQuery(prefix=self.codec.region_prefix(region), consistent=True))

        raise ValueError(f"strategy {strategy.value} cannot enumerate a region")

    async def _remove_all(self, store: DocumentStore, ids: list[str]) -> int:
        removed = 0
        for start in range(0, len(ids), self.batch_size):
            batch = ids[start : start + self.batch_size]
            results = await asyncio.gather(*(self._remove_one(store, doc_id) for doc_id in batch))
            removed += sum(results)
        return removed

    async def _remove_one(self, store: DocumentStore, document_id: str) -> bool:
        try:
            await store.remove(document_id)
            return True
        except DocumentNotFoundError:
            # Expired or removed by a concurrent evictor
            logger.debug("Entry %s already gone during clear", document_id, extra={"id": document_id})
            return False

    async def _flush(self, store: DocumentStore, region: str, allow_flush: bool) -> int:
        if not allow_flush:
            raise DestructiveOperationRefused(region, store.name)

        logger.warning(
            "Flushing entire store '%s' to clear region '%s', all regions and unrelated data are destroyed",
            store.name,
            region,
            extra={"region": region, "store": store.name, "strategy": EvictionStrategy.FLUSH_ONLY.value},
        )
        await store.flush()
        return 0
