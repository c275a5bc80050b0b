"""
regioncache - SQL Document Store

Async SQLAlchemy adapter exposing the QUERYABLE capability tier.
Defaults to SQLite through aiosqlite; any async SQLAlchemy URL works.

- Schema is created lazily on first use (idempotent)
- create_primary_index() builds a key index and reports IndexExistsError if present
- query_keys() enumerates ids with an escaped LIKE prefix match
"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import delete, func, inspect, or_, select, text, update
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ...errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    IndexExistsError,
    StoreError,
    StoreTimeoutError,
)
from ..interface import BackendType, Document, DocumentStore, KeyQuery
from .sql_models import PRIMARY_INDEX_NAME, Base, DocumentRecord

logger = logging.getLogger(__name__)


def escape_like(text: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so ``text`` matches literally."""
    return text.replace(escape, escape * 2).replace("%", f"{escape}%").replace("_", f"{escape}_")


class SqlDocumentStore(DocumentStore):
    """
    SQL document store backed by an async SQLAlchemy engine.

    Provides:
    - Automatic schema creation
    - Async session management
    - Lazy expiry (expired rows are filtered out, overwritten on insert)
    """

    def __init__(self, url: str = "sqlite+aiosqlite:///./data/regioncache.db", name: str = "sql"):
        """
        Initialize SQL document store.

        Args:
            url: Async SQLAlchemy database URL
            name: Store name used in logs and errors
        """
        self.name = name
        self.url = make_url(url)

        connect_args = {}
        if self.url.drivername.startswith("sqlite"):
            connect_args["check_same_thread"] = False  # Required for SQLite

        self.engine: AsyncEngine = create_async_engine(self.url, echo=False, connect_args=connect_args)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    @property
    def store_type(self) -> BackendType:
        return BackendType.QUERYABLE

    async def initialize(self) -> None:
        """
        Initialize database schema.

        Creates the documents table if it doesn't exist.
        Safe to call multiple times (idempotent).
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            database = self.url.database
            if self.url.drivername.startswith("sqlite") and database and database != ":memory:":
                Path(database).resolve().parent.mkdir(parents=True, exist_ok=True)

            async with self._translate_errors("initialize"):
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)

            self._initialized = True

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session (context manager)."""
        if not self._initialized:
            await self.initialize()

        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def _translate_errors(self, operation: str, **context: object) -> AsyncGenerator[None, None]:
        try:
            yield
        except PoolTimeoutError as e:
            raise StoreTimeoutError(
                f"SQL {operation} timed out: {e}",
                details={"store": self.name, "operation": operation, **context},
            ) from e
        except SQLAlchemyError as e:
            raise StoreError(
                f"SQL {operation} failed: {e}",
                details={"store": self.name, "operation": operation, **context},
            ) from e

    @staticmethod
    def _expires_at(expiry: int) -> float | None:
        return time.time() + expiry if expiry > 0 else None

    @staticmethod
    def _live():
        return or_(DocumentRecord.expires_at.is_(None), DocumentRecord.expires_at > time.time())

    # ------------ Key-value ------------

    async def get(self, document_id: str) -> Document | None:
        async with self._translate_errors("get", id=document_id):
            async with self.get_session() as session:
                result = await session.execute(
                    select(DocumentRecord).where(DocumentRecord.id == document_id, self._live())
                )
                record = result.scalar_one_or_none()

        if record is None:
            return None
        remaining = 0 if record.expires_at is None else max(1, int(record.expires_at - time.time()))
        return Document(id=record.id, content=record.content, expiry=remaining)

    async def upsert(self, document: Document) -> None:
        expires_at = self._expires_at(document.expiry)
        async with self._translate_errors("upsert", id=document.id):
            async with self.get_session() as session:
                result = await session.execute(
                    update(DocumentRecord)
                    .where(DocumentRecord.id == document.id)
                    .values(content=document.content, expires_at=expires_at)
                )
                if result.rowcount == 0:
                    session.add(DocumentRecord(id=document.id, content=document.content, expires_at=expires_at))
                try:
                    await session.commit()
                except IntegrityError:
                    # Lost an insert race, the row exists now
                    await session.rollback()
                    await session.execute(
                        update(DocumentRecord)
                        .where(DocumentRecord.id == document.id)
                        .values(content=document.content, expires_at=expires_at)
                    )
                    await session.commit()

    async def insert(self, document: Document) -> None:
        async with self._translate_errors("insert", id=document.id):
            async with self.get_session() as session:
                # An expired row does not count as existing
                await session.execute(
                    delete(DocumentRecord).where(
                        DocumentRecord.id == document.id,
                        DocumentRecord.expires_at.is_not(None),
                        DocumentRecord.expires_at <= time.time(),
                    )
                )
                session.add(
                    DocumentRecord(
                        id=document.id,
                        content=document.content,
                        expires_at=self._expires_at(document.expiry),
                    )
                )
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise DocumentExistsError(document.id) from e

    async def remove(self, document_id: str) -> None:
        async with self._translate_errors("remove", id=document_id):
            async with self.get_session() as session:
                result = await session.execute(
                    delete(DocumentRecord).where(DocumentRecord.id == document_id, self._live())
                )
                await session.commit()

        if result.rowcount == 0:
            raise DocumentNotFoundError(document_id)

    async def flush(self) -> None:
        async with self._translate_errors("flush"):
            async with self.get_session() as session:
                result = await session.execute(delete(DocumentRecord))
                await session.commit()

        logger.warning(
            "Flushed %d documents from SQL store '%s'",
            result.rowcount,
            self.name,
            extra={"store": self.name, "count": result.rowcount},
        )

    # ------------ Index / query ------------

    async def create_primary_index(self) -> None:
        if not self._initialized:
            await self.initialize()

        ddl = text(f"CREATE INDEX {PRIMARY_INDEX_NAME} ON {DocumentRecord.__tablename__} (id)")

        def _create(sync_conn) -> bool:
            existing = {ix["name"] for ix in inspect(sync_conn).get_indexes(DocumentRecord.__tablename__)}
            if PRIMARY_INDEX_NAME in existing:
                return False
            sync_conn.execute(ddl)
            return True

        try:
            async with self.engine.begin() as conn:
                created = await conn.run_sync(_create)
        except SQLAlchemyError as e:
            if "already exists" in str(e).lower():
                created = False
            else:
                raise StoreError(
                    f"Failed to create primary index: {e}",
                    details={"store": self.name, "index": PRIMARY_INDEX_NAME},
                ) from e

        if not created:
            raise IndexExistsError(
                f"Primary index already exists on store '{self.name}'",
                details={"store": self.name, "index": PRIMARY_INDEX_NAME},
            )

        logger.info("Created primary index '%s' on SQL store '%s'", PRIMARY_INDEX_NAME, self.name)

    async def query_keys(self, query: KeyQuery) -> list[str]:
        statement = (
            select(DocumentRecord.id)
            .where(
                DocumentRecord.id.like(f"{escape_like(query.prefix)}%", escape="\\"),
                # LIKE is case-insensitive on some engines
                func.substr(DocumentRecord.id, 1, len(query.prefix)) == query.prefix,
                self._live(),
            )
            .order_by(DocumentRecord.id)
        )
        if query.limit is not None:
            statement = statement.limit(query.limit)

        async with self._translate_errors("query_keys", prefix=query.prefix):
            async with self.get_session() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())

    async def close(self) -> None:
        """Close database connections gracefully."""
        await self.engine.dispose()
        self._initialized = False
