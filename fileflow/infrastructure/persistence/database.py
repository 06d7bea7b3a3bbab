"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

Used only when storage_backend is 'postgres'. The engine is created by
the SQL storage adapter when it opens, never at import time, so importing
this module does not trigger settings validation.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from fileflow.core.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine for settings.database_url.

    Pool options apply to server databases only; SQLite (used for local
    experiments) rejects pool_size/max_overflow.
    """
    kwargs: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }
    if not settings.database_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size if settings.db_pool_size is not None else 10
        kwargs["max_overflow"] = (
            settings.db_max_overflow if settings.db_max_overflow is not None else 20
        )
        kwargs["pool_recycle"] = 3600
    logger.debug("Creating SQL engine (echo=%s)", settings.database_echo)
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the same flags for every session."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet (idempotent)."""
    from fileflow.infrastructure.persistence import models  # noqa: F401  (register tables)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
