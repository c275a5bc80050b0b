"""
regioncache - Document Store Interface

Defines the contract every backing document store adapter must implement,
along with the small value types exchanged with it.

A store declares its capability tier through ``store_type``:

- DOCUMENT: materialized views (and a query primitive)
- QUERYABLE: a primary/secondary index and a declarative key query, no views
- KEY_VALUE: get/upsert/insert/remove and a whole-store flush only
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from ..errors import StoreOperationNotSupported


class BackendType(str, Enum):
    """Capability tier declared by a backing store."""

    DOCUMENT = "document"
    QUERYABLE = "queryable"
    KEY_VALUE = "key_value"


@dataclass(frozen=True)
class Document:
    """A stored entry: storage key, serialized content and TTL in seconds (0 = no expiry)."""

    id: str
    content: str
    expiry: int = 0


@dataclass(frozen=True)
class View:
    """
    A materialized view.

    ``map_function`` receives a document id and returns the key to emit,
    or None to skip the document.
    """

    name: str
    map_function: Callable[[str], str | None]


@dataclass
class DesignDocument:
    """A named group of views."""

    name: str
    views: list[View] = field(default_factory=list)

    def view(self, name: str) -> View | None:
        """Return the view called ``name`` if present."""
        for view in self.views:
            if view.name == name:
                return view
        return None


@dataclass(frozen=True)
class ViewRow:
    """One row of a view query result."""

    id: str
    key: str


@dataclass(frozen=True)
class KeyQuery:
    """Declarative key enumeration: every live document id starting with ``prefix``."""

    prefix: str
    consistent: bool = True
    limit: int | None = None


class DocumentStore(ABC):
    """
    Abstract base class for backing document stores.

    Key-value methods are mandatory. View, index and query methods are
    optional and raise StoreOperationNotSupported unless the backend
    overrides them.
    """

    name: str = "store"

    @property
    @abstractmethod
    def store_type(self) -> BackendType:
        """Capability tier of this store."""

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """
        Fetch a document by id.

        Returns:
            The document, or None if absent or expired
        """

    @abstractmethod
    async def upsert(self, document: Document) -> None:
        """Insert or replace a document."""

    @abstractmethod
    async def insert(self, document: Document) -> None:
        """
        Insert a document that must not exist yet.

        Raises:
            DocumentExistsError: If a live document with the same id exists
        """

    @abstractmethod
    async def remove(self, document_id: str) -> None:
        """
        Remove a document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """

    async def exists(self, document_id: str) -> bool:
        """Check whether a live document exists."""
        return await self.get(document_id) is not None

    @abstractmethod
    async def flush(self) -> None:
        """Irreversibly delete every document in the store."""

    async def get_design_document(self, name: str) -> DesignDocument | None:
        raise StoreOperationNotSupported(self.name, "views")

    async def insert_design_document(self, design_document: DesignDocument) -> None:
        raise StoreOperationNotSupported(self.name, "views")

    async def upsert_design_document(self, design_document: DesignDocument) -> None:
        raise StoreOperationNotSupported(self.name, "views")

    async def query_view(
        self,
        design_document: str,
        view: str,
        key: str | None = None,
        consistent: bool = True,
    ) -> list[ViewRow]:
        raise StoreOperationNotSupported(self.name, "views")

    async def create_primary_index(self) -> None:
        """
        Create the primary index used by key queries.

        Raises:
            IndexExistsError: If the index already exists
        """
        raise StoreOperationNotSupported(self.name, "indexes")

    async def query_keys(self, query: KeyQuery) -> list[str]:
        raise StoreOperationNotSupported(self.name, "queries")

    async def close(self) -> None:
        """Release connections held by the store."""
