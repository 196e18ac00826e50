"""SQL record store backend — async SQLAlchemy over a single key/value table.

Supports any async SQLAlchemy driver; the default DSN is a local SQLite file
through aiosqlite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import LargeBinary, String, delete, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sataddress.config.settings import StoreConfig


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for store tables."""


class RecordRow(Base):
    """One serialized address record."""

    __tablename__ = "address_records"

    key: Mapped[str] = mapped_column(String(320), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


def create_engine(config: StoreConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from store configuration.

    Args:
        config: Store configuration with DSN and echo flag.

    Returns:
        A configured ``AsyncEngine`` ready for use.
    """
    kwargs: dict = {
        "echo": config.debug_sql,
    }

    # SQLite doesn't support pool settings in the same way
    if "sqlite" not in config.dsn:
        kwargs["pool_pre_ping"] = True

    return create_async_engine(config.dsn, **kwargs)


class SQLStore:
    """Key/value backend storing records in the ``address_records`` table."""

    def __init__(self, config: StoreConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def connect(self) -> None:
        """Create the engine and the table if missing."""
        self._engine = create_engine(self._config)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose the engine and release all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def get(self, key: str) -> bytes | None:
        async with self._session() as session:
            row = await session.get(RecordRow, key)
            return None if row is None else row.value

    async def put(self, key: str, value: bytes) -> bool:
        """Insert or replace a value in one transaction.

        Returns:
            True if the key already held a value.
        """
        async with self._session() as session, session.begin():
            row = await session.get(RecordRow, key)
            if row is None:
                session.add(RecordRow(key=key, value=value))
                return False
            row.value = value
            return True

    async def exists(self, key: str) -> bool:
        async with self._session() as session:
            result = await session.execute(select(RecordRow.key).where(RecordRow.key == key))
            return result.scalar_one_or_none() is not None

    async def scan(self) -> AsyncIterator[tuple[str, bytes]]:
        async with self._session() as session:
            result = await session.execute(select(RecordRow).order_by(RecordRow.key))
            rows = result.scalars().all()
        for row in rows:
            yield row.key, row.value

    async def clear(self) -> None:
        async with self._session() as session, session.begin():
            await session.execute(delete(RecordRow))

    def _session(self) -> AsyncSession:
        if self._session_factory is None:
            msg = "SQL store is not open. Call connect() first."
            raise RuntimeError(msg)
        return self._session_factory()
