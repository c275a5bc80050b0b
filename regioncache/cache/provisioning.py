"""
regioncache - Index Provisioning

Ensures the structure a region needs for scoped eviction exists on the store:

- INDEX_QUERY: a "names" view in the "cache" design document, emitting the
  region component of every storage key shaped ``prefix:region:key``
- SCAN_QUERY: the store's primary index

Provisioning is idempotent and tolerates concurrent callers: a design
document that was absent on read but exists on write, or a primary index
that already exists, counts as success.
"""

import logging

from ..errors import (
    DocumentExistsError,
    IndexExistsError,
    IndexProvisioningError,
    StoreError,
)
from ..store.interface import DesignDocument, DocumentStore, View
from .keys import KeyCodec
from .strategy import EvictionStrategy

logger = logging.getLogger(__name__)

CACHE_DESIGN_DOCUMENT = "cache"
CACHE_VIEW = "names"


class IndexProvisioner:
    """Creates the region view or primary index on demand."""

    def __init__(
        self,
        codec: KeyCodec,
        design_document: str = CACHE_DESIGN_DOCUMENT,
        view_name: str = CACHE_VIEW,
    ):
        self.codec = codec
        self.design_document = design_document
        self.view_name = view_name

    def build_view(self) -> View:
        """The region view: emits the region name of every cache storage key."""
        return View(name=self.view_name, map_function=self.codec.decode)

    async def ensure(self, store: DocumentStore, strategy: EvictionStrategy) -> None:
        """Provision whatever ``strategy`` needs. FLUSH_ONLY needs nothing."""
        if strategy is EvictionStrategy.INDEX_QUERY:
            await self.ensure_view(store)
        elif strategy is EvictionStrategy.SCAN_QUERY:
            await self.ensure_primary_index(store)

    async def ensure_view(self, store: DocumentStore) -> None:
        """
        Make sure the region view exists.

        Raises:
            IndexProvisioningError: If the design document cannot be written
        """
        design = await self._read_design_document(store)
        if design is not None and design.view(self.view_name) is not None:
            return

        try:
            if design is None:
                try:
                    await store.insert_design_document(
                        DesignDocument(name=self.design_document, views=[self.build_view()])
                    )
                except DocumentExistsError:
                    # Another instance created it between our read and write
                    logger.debug(
                        "Design document '%s' created concurrently, re-reading",
                        self.design_document,
                        extra={"store": store.name, "design_document": self.design_document},
                    )
                    design = await store.get_design_document(self.design_document)
                    if design is None or design.view(self.view_name) is None:
                        await self._upsert_with_view(store, design)
            else:
                await self._upsert_with_view(store, design)
        except StoreError as e:
            logger.error(
                f"Failed to provision view {self.design_document}/{self.view_name}: {e}",
                extra={"store": store.name, "design_document": self.design_document, "error": str(e)},
                exc_info=True,
            )
            raise IndexProvisioningError(
                f"Failed to provision view {self.design_document}/{self.view_name}: {e}",
                details={"store": store.name, "design_document": self.design_document, "view": self.view_name},
            ) from e

        logger.info(
            "Provisioned view %s/%s on store '%s'",
            self.design_document,
            self.view_name,
            store.name,
            extra={"store": store.name, "design_document": self.design_document, "view": self.view_name},
        )

    async def ensure_primary_index(self, store: DocumentStore) -> None:
        """
        Make sure the store's primary index exists.

        Raises:
            IndexProvisioningError: If index creation fails for any reason other than "already exists"
        """
        try:
            await store.create_primary_index()
        except IndexExistsError:
            logger.debug("Primary index already present on store '%s'", store.name)
        except StoreError as e:
            logger.error(
                f"Failed to create primary index on store '{store.name}': {e}",
                extra={"store": store.name, "error": str(e)},
                exc_info=True,
            )
            raise IndexProvisioningError(
                f"Failed to create primary index on store '{store.name}': {e}",
                details={"store": store.name},
            ) from e

    async def _read_design_document(self, store: DocumentStore) -> DesignDocument | None:
        try:
            return await store.get_design_document(self.design_document)
        except StoreError as e:
            # Unreadable is treated as absent, the write below reports real failures
            logger.debug(
                "Unable to retrieve design document %s: %s",
                self.design_document,
                e,
                extra={"store": store.name, "design_document": self.design_document},
            )
            return None

    async def _upsert_with_view(self, store: DocumentStore, design: DesignDocument | None) -> None:
        if design is None:
            design = DesignDocument(name=self.design_document)
        design.views.append(self.build_view())
        await store.upsert_design_document(design)
