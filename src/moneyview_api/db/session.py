"""Database engine and per-request sessions.

One lazily built async engine serves the process. Each request to
``POST /cashKuber`` borrows a session through ``get_db``; the repository
commits every insert itself, so the dependency only opens and closes it.

The ``moneyview`` table is owned by the partner platform; this service never
creates or migrates it.
"""
from collections.abc import AsyncGenerator
from functools import cached_property
from typing import Annotated, Any

import structlog
from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ..core.config import Settings, get_settings

log = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy ORM models."""


class LeadDatabase:
    """Engine and session factory for the lead store."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @cached_property
    def engine(self) -> AsyncEngine:
        options: dict[str, Any] = {
            "echo": self.settings.DATABASE_ECHO,
            "pool_pre_ping": True,
        }
        # SQLite (tests, local smoke runs) has no queue pool to size.
        if not self.settings.is_sqlite:
            options.update(
                pool_size=self.settings.DATABASE_POOL_SIZE,
                max_overflow=self.settings.DATABASE_MAX_OVERFLOW,
                pool_timeout=self.settings.DATABASE_POOL_TIMEOUT,
            )
        engine = create_async_engine(self.settings.DATABASE_URL, **options)
        log.info("db_engine_created", dialect=engine.dialect.name)
        return engine

    @cached_property
    def sessions(self) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def dispose(self) -> None:
        if "engine" in self.__dict__:
            await self.engine.dispose()
            del self.__dict__["engine"]
            self.__dict__.pop("sessions", None)
            log.info("db_connections_closed")


_database: LeadDatabase | None = None


def get_database() -> LeadDatabase:
    """Return the process-level lead database, building it on first use."""
    global _database
    if _database is None:
        _database = LeadDatabase(get_settings())
    return _database


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency - yields a per-request async database session."""
    async with get_database().sessions() as session:
        yield session


async def close_db() -> None:
    """Dispose the connection pool (called on application shutdown)."""
    if _database is not None:
        await _database.dispose()


DbSession = Annotated[AsyncSession, Depends(get_db)]
