"""
regioncache - Document Store Module

Backing document store contract and adapters.

- interface.py: DocumentStore contract and exchanged value types
- backends/: memory (always available), redis and sql (lazy-loaded)
- factory.py: builds the shared store from configuration

Usage:
    from regioncache.store import BackendType, InMemoryDocumentStore

    store = InMemoryDocumentStore(store_type=BackendType.QUERYABLE)
"""

from .backends.memory import InMemoryDocumentStore
from .interface import (
    BackendType,
    DesignDocument,
    Document,
    DocumentStore,
    KeyQuery,
    View,
    ViewRow,
)

__all__ = [
    "BackendType",
    "DesignDocument",
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "KeyQuery",
    "View",
    "ViewRow",
]
