from __future__ import annotations

from datetime import datetime, timezone
import logging
from uuid import uuid4

from devkit.db import AsyncDatabaseManager, Base, create_all_tables, is_postgres_dsn, is_transient_db_error
from sqlalchemy import DateTime, Float, String, Text, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from emergency_service.errors import PersistenceFailure
from emergency_service.models import EmergencyRequest, StoredEmergencyRequest

logger = logging.getLogger(__name__)


class EmergencyRequestORM(Base):
    __tablename__ = "emergency_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(64), nullable=False)
    issue: Mapped[str] = mapped_column(Text, nullable=False)
    vehicle: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class EmergencyRequestStore:
    """Insert-only store for validated emergency requests.

    Uses PostgreSQL when ``database_url`` is set and keeps rows in memory when it
    is not. Any other database URL is rejected. Inserts are single ORM adds, so
    values are always bound parameters. Failed inserts are not retried.
    """

    def __init__(self, *, database_url: str | None, db: AsyncDatabaseManager | None = None) -> None:
        if db is None and database_url:
            if not is_postgres_dsn(database_url):
                raise ValueError("DATABASE_URL must be a PostgreSQL DSN (postgresql://...)")
            db = AsyncDatabaseManager(database_url)
        self._db = db
        self._orm_ready = False
        self._rows: dict[str, StoredEmergencyRequest] = {}

    @property
    def uses_database(self) -> bool:
        return self._db is not None

    async def ensure_ready(self) -> None:
        if self._db is None:
            logger.warning(
                "emergency_store_in_memory",
                extra={"component": "store", "reason": "DATABASE_URL is not set; requests are lost on restart"},
            )
            return
        await self._ensure_orm_ready()

    async def close(self) -> None:
        if self._db is not None:
            await self._db.disconnect()
            self._orm_ready = False

    async def ping(self) -> None:
        if self._db is None:
            return
        await self._ensure_orm_ready()
        await self._db.ping()

    async def insert(self, request: EmergencyRequest) -> StoredEmergencyRequest:
        stored = StoredEmergencyRequest(
            request_id=str(uuid4()),
            created_at=datetime.now(timezone.utc),
            request=request,
        )
        if self._db is None:
            self._rows[stored.request_id] = stored
            return stored

        async def _run(session):
            session.add(
                EmergencyRequestORM(
                    id=stored.request_id,
                    name=request.name,
                    phone=request.phone,
                    issue=request.issue,
                    vehicle=request.vehicle,
                    latitude=request.latitude,
                    longitude=request.longitude,
                    created_at=stored.created_at,
                )
            )
            return stored

        try:
            await self._ensure_orm_ready()
            return await self._db.run_with_session(_run)
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "emergency_request_insert_failed",
                exc_info=True,
                extra={
                    "component": "store",
                    "request_id": stored.request_id,
                    "transient": isinstance(exc, SQLAlchemyError) and is_transient_db_error(exc),
                },
            )
            raise PersistenceFailure(f"insert failed: {type(exc).__name__}") from exc

    async def get(self, request_id: str) -> StoredEmergencyRequest | None:
        if self._db is None:
            return self._rows.get(request_id)

        await self._ensure_orm_ready()

        async def _run(session):
            row = await session.get(EmergencyRequestORM, request_id)
            return self._to_entity(row) if row else None

        return await self._db.run_with_session(_run)

    async def _ensure_orm_ready(self) -> None:
        if self._db is None or self._orm_ready:
            return
        await self._db.connect()
        await create_all_tables(self._db.engine, Base.metadata)
        self._orm_ready = True

    def _to_entity(self, row: EmergencyRequestORM) -> StoredEmergencyRequest:
        return StoredEmergencyRequest(
            request_id=row.id,
            created_at=row.created_at,
            request=EmergencyRequest(
                name=row.name,
                phone=row.phone,
                issue=row.issue,
                vehicle=row.vehicle,
                latitude=row.latitude,
                longitude=row.longitude,
            ),
        )
