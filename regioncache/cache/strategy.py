"""
regioncache - Eviction Strategy Selection

Maps the capability tier a store declares onto the way a region is cleared:

    DOCUMENT   -> INDEX_QUERY  (materialized view keyed by region name)
    QUERYABLE  -> SCAN_QUERY   (prefix key query over the primary index)
    KEY_VALUE  -> FLUSH_ONLY   (whole-store flush, destructive opt-in required)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import UnsupportedBackendError
from ..store.interface import BackendType, DocumentStore

if TYPE_CHECKING:
    from .provisioning import IndexProvisioner

logger = logging.getLogger(__name__)


class EvictionStrategy(str, Enum):
    """How clear() enumerates a region's keys."""

    INDEX_QUERY = "index_query"
    SCAN_QUERY = "scan_query"
    FLUSH_ONLY = "flush_only"


_STRATEGIES = {
    BackendType.DOCUMENT: EvictionStrategy.INDEX_QUERY,
    BackendType.QUERYABLE: EvictionStrategy.SCAN_QUERY,
    BackendType.KEY_VALUE: EvictionStrategy.FLUSH_ONLY,
}


def classify_store(store: DocumentStore) -> EvictionStrategy:
    """
    Choose the eviction strategy for a store.

    Raises:
        UnsupportedBackendError: If the declared store type is not recognized
    """
    declared = store.store_type
    try:
        backend_type = BackendType(declared)
    except ValueError:
        raise UnsupportedBackendError(declared, {"store": getattr(store, "name", type(store).__name__)}) from None
    return _STRATEGIES[backend_type]


async def resolve_strategy(
    store: DocumentStore,
    provisioner: IndexProvisioner,
    always_flush: bool = False,
) -> EvictionStrategy:
    """
    Classify a store and make sure the index or view the strategy needs exists.

    Args:
        store: Backing store
        provisioner: Provisioner for views and indexes
        always_flush: Skip probing and select FLUSH_ONLY

    Returns:
        The selected strategy
    """
    if always_flush:
        logger.info(
            "Store '%s' configured to always flush, skipping capability detection",
            store.name,
            extra={"store": store.name, "strategy": EvictionStrategy.FLUSH_ONLY.value},
        )
        return EvictionStrategy.FLUSH_ONLY

    strategy = classify_store(store)
    await provisioner.ensure(store, strategy)

    logger.debug(
        "Selected eviction strategy %s for store '%s'",
        strategy.value,
        store.name,
        extra={"store": store.name, "strategy": strategy.value},
    )
    return strategy
