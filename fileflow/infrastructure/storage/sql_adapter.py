"""Transactional record store on SQLAlchemy (async, Postgres via asyncpg).

Each collection maps to one ORM table. Outside transaction() every call
runs in its own short session and commits on return. Inside
transaction() all calls made by the current task share one session, bound
through a context variable, and commit or roll back together.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from fileflow.application.interfaces.storage import Filter
from fileflow.core.config import Settings
from fileflow.core.constants import COLLECTION_FILES, COLLECTION_USERS, COLLECTION_VERSIONS
from fileflow.domain.exceptions import StorageUnavailableException
from fileflow.infrastructure.exceptions import RecordConflictError
from fileflow.infrastructure.persistence.database import (
    create_engine_from_settings,
    create_schema,
    create_session_factory,
)
from fileflow.infrastructure.persistence.models import FileModel, UserModel, VersionModel
from fileflow.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)

_MODELS: dict[str, type[DeclarativeBase]] = {
    COLLECTION_USERS: UserModel,
    COLLECTION_FILES: FileModel,
    COLLECTION_VERSIONS: VersionModel,
}

_current_session: ContextVar[AsyncSession | None] = ContextVar(
    "fileflow_sql_session", default=None
)


def _to_record(obj: Any) -> dict[str, Any]:
    """ORM row -> plain dict (column attributes only)."""
    return {attr.key: getattr(obj, attr.key) for attr in obj.__mapper__.column_attrs}


class SqlStorageAdapter:
    """TransactionalStorageAdapter over SQLAlchemy.

    Args:
        settings: Provides database_url and pool options (ignored when
            session_factory is given).
        session_factory: Optional pre-built factory (tests, shared engines).
        create_tables: Run CREATE TABLE IF NOT EXISTS on open().
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        create_tables: bool = True,
    ) -> None:
        if settings is None and session_factory is None:
            raise ValueError("SqlStorageAdapter needs settings or a session_factory")
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory = session_factory
        self._owns_engine = session_factory is None
        self._create_tables = create_tables

    def generate_id(self) -> str:
        return generate_cuid()

    async def open(self) -> None:
        if self._session_factory is None:
            assert self._settings is not None
            self._engine = create_engine_from_settings(self._settings)
            self._session_factory = create_session_factory(self._engine)
        if self._create_tables:
            bind = self._engine or self._session_factory.kw.get("bind")
            if bind is not None:
                await create_schema(bind)

    async def close(self) -> None:
        if self._engine is not None and self._owns_engine:
            await self._engine.dispose()
            logger.info("SQL engine disposed")
        self._engine = None

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise StorageUnavailableException("connect", "sql", "adapter not opened")
        return self._session_factory

    @staticmethod
    def _model(name: str) -> Any:
        try:
            return _MODELS[name]
        except KeyError:
            raise ValueError(f"Unknown collection: {name!r}") from None

    @staticmethod
    def in_transaction() -> bool:
        return _current_session.get() is not None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Group adapter calls into one database transaction (re-entrant)."""
        if _current_session.get() is not None:
            yield
            return
        async with self._factory()() as session:
            async with session.begin():
                token = _current_session.set(session)
                try:
                    yield
                finally:
                    _current_session.reset(token)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Current transaction's session, or a fresh one that commits on exit."""
        current = _current_session.get()
        if current is not None:
            yield current
            return
        async with self._factory()() as session:
            async with session.begin():
                yield session

    def _read_failed(self, name: str, exc: SQLAlchemyError) -> None:
        """Reads degrade to empty results, except inside a transaction."""
        if self.in_transaction():
            raise StorageUnavailableException("read", name, str(exc)) from exc
        logger.error("SQL read on %s failed; returning empty result: %s", name, exc)

    def _apply_filters(self, stmt: Any, model: Any, filters: list[Filter]) -> tuple[Any, list[Filter]]:
        """Push == and in filters into SQL; return the remaining ones for Python."""
        remaining: list[Filter] = []
        for f in filters:
            column = getattr(model, f.field)
            if f.op == "==":
                stmt = stmt.where(column == f.value)
            elif f.op == "in":
                stmt = stmt.where(column.in_(list(f.value)))
            else:
                # JSON array membership is dialect-specific; evaluated after fetch.
                remaining.append(f)
        return stmt, remaining

    async def get_collection(self, name: str) -> list[dict[str, Any]]:
        model = self._model(name)
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(model).order_by(model.created_at, model.id)
                )
                return [_to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self._read_failed(name, e)
            return []

    async def save_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        model = self._model(name)
        try:
            async with self.transaction():
                async with self._session() as session:
                    await session.execute(delete(model))
                    session.add_all(model(**record) for record in records)
                    await session.flush()
        except IntegrityError as e:
            raise RecordConflictError(name, str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error("SQL save_collection on %s failed: %s", name, e)
            raise StorageUnavailableException("save_collection", name, str(e)) from e

    async def get(self, name: str, record_id: str) -> dict[str, Any] | None:
        model = self._model(name)
        try:
            async with self._session() as session:
                row = await session.get(model, record_id)
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as e:
            self._read_failed(name, e)
            return None

    async def find(self, name: str, filters: list[Filter] | None = None) -> list[dict[str, Any]]:
        model = self._model(name)
        stmt, remaining = self._apply_filters(
            select(model).order_by(model.created_at, model.id), model, list(filters or ())
        )
        try:
            async with self._session() as session:
                result = await session.execute(stmt)
                records = [_to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self._read_failed(name, e)
            return []
        return [r for r in records if all(f.matches(r) for f in remaining)]

    async def insert(self, name: str, record: dict[str, Any]) -> dict[str, Any]:
        model = self._model(name)
        try:
            async with self._session() as session:
                obj = model(**record)
                session.add(obj)
                await session.flush()
                return _to_record(obj)
        except IntegrityError as e:
            raise RecordConflictError(name, str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error("SQL insert on %s failed: %s", name, e)
            raise StorageUnavailableException("insert", name, str(e)) from e

    async def update(
        self, name: str, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        model = self._model(name)
        try:
            async with self._session() as session:
                obj = await session.get(model, record_id, with_for_update=True)
                if obj is None:
                    return None
                for key, value in changes.items():
                    setattr(obj, key, value)
                await session.flush()
                return _to_record(obj)
        except IntegrityError as e:
            raise RecordConflictError(name, str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error("SQL update on %s failed: %s", name, e)
            raise StorageUnavailableException("update", name, str(e)) from e

    async def delete_many(self, name: str, field: str, values: list[Any]) -> int:
        if not values:
            return 0
        model = self._model(name)
        try:
            async with self._session() as session:
                result = await session.execute(
                    delete(model).where(getattr(model, field).in_(list(values)))
                )
                return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            logger.error("SQL delete on %s failed: %s", name, e)
            raise StorageUnavailableException("delete", name, str(e)) from e
