"""
regioncache - In-Memory Document Store

In-process document store with per-document expiry. Any of the three
capability tiers can be selected, which makes it the reference backend for
tests and single-process deployments.
"""

import asyncio
import logging
import time

from ...errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    IndexExistsError,
    StoreError,
    StoreOperationNotSupported,
)
from ..interface import (
    BackendType,
    DesignDocument,
    Document,
    DocumentStore,
    KeyQuery,
    ViewRow,
)

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """
    In-memory document store.

    Features:
    - Per-document TTL (0 = no expiry), expired entries are dropped lazily
    - Atomic insert (fails if a live document exists)
    - Materialized views evaluated on query (DOCUMENT tier)
    - Primary index and prefix key queries (DOCUMENT and QUERYABLE tiers)
    - Whole-store flush (all tiers)
    """

    def __init__(
        self,
        store_type: BackendType = BackendType.DOCUMENT,
        name: str = "memory",
    ):
        """
        Initialize the in-memory store.

        Args:
            store_type: Capability tier to expose
            name: Store name used in logs and errors
        """
        self._store_type = BackendType(store_type)
        self.name = name

        # Storage: id -> (content, expiry_time)
        self._documents: dict[str, tuple[str, float | None]] = {}
        self._design_documents: dict[str, DesignDocument] = {}
        self._primary_index = False

        self._lock = asyncio.Lock()

    @property
    def store_type(self) -> BackendType:
        return self._store_type

    @staticmethod
    def _expiry_time(ttl: int) -> float | None:
        return time.time() + ttl if ttl > 0 else None

    @staticmethod
    def _is_expired(expiry: float | None) -> bool:
        if expiry is None:
            return False
        return time.time() > expiry

    def _live(self, document_id: str) -> tuple[str, float | None] | None:
        """Return the live entry for an id, dropping it if expired. Caller holds the lock."""
        entry = self._documents.get(document_id)
        if entry is None:
            return None
        if self._is_expired(entry[1]):
            del self._documents[document_id]
            return None
        return entry

    def _live_ids(self) -> list[str]:
        return [doc_id for doc_id in list(self._documents) if self._live(doc_id) is not None]

    def _require(self, capability: str, *tiers: BackendType) -> None:
        if self._store_type not in tiers:
            raise StoreOperationNotSupported(self.name, capability)

    # ------------ Key-value ------------

    async def get(self, document_id: str) -> Document | None:
        async with self._lock:
            entry = self._live(document_id)
            if entry is None:
                return None
            content, expiry = entry
            remaining = 0 if expiry is None else max(1, int(expiry - time.time()))
            return Document(id=document_id, content=content, expiry=remaining)

    async def upsert(self, document: Document) -> None:
        async with self._lock:
            self._documents[document.id] = (document.content, self._expiry_time(document.expiry))

    async def insert(self, document: Document) -> None:
        async with self._lock:
            if self._live(document.id) is not None:
                raise DocumentExistsError(document.id)
            self._documents[document.id] = (document.content, self._expiry_time(document.expiry))

    async def remove(self, document_id: str) -> None:
        async with self._lock:
            if self._live(document_id) is None:
                raise DocumentNotFoundError(document_id)
            del self._documents[document_id]

    async def flush(self) -> None:
        async with self._lock:
            size = len(self._documents)
            self._documents.clear()
        logger.info(
            "Flushed %d documents from memory store '%s'",
            size,
            self.name,
            extra={"store": self.name, "count": size},
        )

    # ------------ Views ------------

    async def get_design_document(self, name: str) -> DesignDocument | None:
        self._require("views", BackendType.DOCUMENT)
        async with self._lock:
            design = self._design_documents.get(name)
            if design is None:
                return None
            # Callers mutate the returned copy and write it back
            return DesignDocument(name=design.name, views=list(design.views))

    async def insert_design_document(self, design_document: DesignDocument) -> None:
        self._require("views", BackendType.DOCUMENT)
        async with self._lock:
            if design_document.name in self._design_documents:
                raise DocumentExistsError(f"_design/{design_document.name}")
            self._design_documents[design_document.name] = DesignDocument(
                name=design_document.name, views=list(design_document.views)
            )

    async def upsert_design_document(self, design_document: DesignDocument) -> None:
        self._require("views", BackendType.DOCUMENT)
        async with self._lock:
            self._design_documents[design_document.name] = DesignDocument(
                name=design_document.name, views=list(design_document.views)
            )

    async def query_view(
        self,
        design_document: str,
        view: str,
        key: str | None = None,
        consistent: bool = True,
    ) -> list[ViewRow]:
        self._require("views", BackendType.DOCUMENT)
        async with self._lock:
            design = self._design_documents.get(design_document)
            definition = design.view(view) if design else None
            if definition is None:
                raise StoreError(
                    f"View not found: {design_document}/{view}",
                    details={"store": self.name, "design_document": design_document, "view": view},
                )

            rows = []
            for doc_id in sorted(self._live_ids()):
                emitted = definition.map_function(doc_id)
                if emitted is None:
                    continue
                if key is None or emitted == key:
                    rows.append(ViewRow(id=doc_id, key=emitted))
            return rows

    # ------------ Index / query ------------

    async def create_primary_index(self) -> None:
        self._require("indexes", BackendType.DOCUMENT, BackendType.QUERYABLE)
        async with self._lock:
            if self._primary_index:
                raise IndexExistsError(
                    f"Primary index already exists on store '{self.name}'",
                    details={"store": self.name},
                )
            self._primary_index = True

    async def query_keys(self, query: KeyQuery) -> list[str]:
        self._require("queries", BackendType.DOCUMENT, BackendType.QUERYABLE)
        async with self._lock:
            if not self._primary_index:
                raise StoreError(
                    f"No index available on store '{self.name}' to serve key query",
                    details={"store": self.name, "prefix": query.prefix},
                )
            ids = sorted(doc_id for doc_id in self._live_ids() if doc_id.startswith(query.prefix))
            if query.limit is not None:
                ids = ids[: query.limit]
            return ids

    async def close(self) -> None:
        # Nothing to release, data lives in-process
        logger.debug("Memory store '%s' closed", self.name)
