"""
regioncache - SQL Document Store Models

SQLAlchemy models for the SQL-backed document store.
"""

from sqlalchemy import Float, String, Text
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""

    pass


class DocumentRecord(Base):
    """
    One stored document.

    ``expires_at`` is a UNIX timestamp; NULL means the document never expires.
    Expired rows are invisible to reads and are overwritten by inserts.
    """

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(1024), primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[float | None] = mapped_column(Float, nullable=True)


PRIMARY_INDEX_NAME = "ix_documents_keys"
