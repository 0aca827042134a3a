from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy import MetaData, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine as _create_async_engine
from sqlalchemy.orm import DeclarativeBase

T = TypeVar("T")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models."""


def normalize_postgres_dsn(dsn: str) -> str:
    if dsn.startswith("postgres://"):
        return dsn.replace("postgres://", "postgresql+psycopg://", 1)
    if dsn.startswith("postgresql://"):
        return dsn.replace("postgresql://", "postgresql+psycopg://", 1)
    return dsn


def is_postgres_dsn(dsn: str | None) -> bool:
    return bool(dsn) and normalize_postgres_dsn(dsn).startswith("postgresql")


def create_async_engine(dsn: str) -> AsyncEngine:
    return _create_async_engine(
        normalize_postgres_dsn(dsn),
        future=True,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


def is_transient_db_error(exc: Exception) -> bool:
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError):
        return bool(getattr(exc, "connection_invalidated", False))
    return False


async def create_all_tables(engine: AsyncEngine, metadata: MetaData) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


class AsyncDatabaseManager:
    """Owns one async engine and its session factory for the process lifetime.

    ``run_with_session`` commits on success and rolls back on error. It does not
    retry: callers whose writes are not idempotent must not be replayed blindly.
    """

    def __init__(self, dsn: str) -> None:
        self._dsn = normalize_postgres_dsn(dsn)
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("database manager is not connected")
        return self._engine

    async def connect(self) -> None:
        if self._engine is None:
            self._engine = create_async_engine(self._dsn)
            self._session_factory = create_session_factory(self._engine)
        await self.ping()

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._session_factory is None:
            await self.connect()
        assert self._session_factory is not None
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def run_with_session(
        self,
        fn: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        async with self.session() as session:
            return await fn(session)
