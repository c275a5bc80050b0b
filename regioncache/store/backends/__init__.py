"""
regioncache - Document Store Backends

Exports available store implementations.

Redis and SQL stores are lazy-loaded via store/factory.py to avoid import overhead.
"""

from .memory import InMemoryDocumentStore

__all__ = [
    "InMemoryDocumentStore",
]
