"""Moneyview repository.

Async data access for the ``moneyview`` table: the duplicate count used by
the ingest pipeline, the single-row insert and the ping behind the health
endpoints.

Each insert is committed on its own. A batch is never wrapped in one
transaction, so rows written before a later failure stay written.
"""
from __future__ import annotations

import time
from typing import Any

import structlog
from sqlalchemy import func, insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.moneyview import Moneyview

log = structlog.get_logger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO NOTHING.
_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class MoneyviewRepository:
    """Repository for the dedup check and insert of partner leads."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_matching(self, *, phone: str | None, pan: str | None) -> int:
        """Count rows sharing the phone OR the PAN.

        An absent value adds no predicate, mirroring SQL NULL semantics where
        ``phone = NULL`` never matches. With both absent the count is 0.
        """
        conditions = []
        if phone is not None:
            conditions.append(Moneyview.phone == phone)
        if pan is not None:
            conditions.append(Moneyview.pan == pan)
        if not conditions:
            return 0

        stmt = select(func.count()).select_from(Moneyview).where(or_(*conditions))
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def insert(self, columns: dict[str, Any]) -> int:
        """Insert one row and commit; return the number of rows written.

        On PostgreSQL and SQLite the statement is ``ON CONFLICT DO NOTHING``,
        so losing a race against a concurrent request on the phone/PAN unique
        constraints yields 0 instead of an IntegrityError.
        """
        stmt = self._insert_statement().values(**columns)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    def _insert_statement(self) -> Any:
        table = Moneyview.__table__
        dialect = self.session.get_bind().dialect.name
        factory = _ON_CONFLICT_INSERTS.get(dialect)
        if factory is None:
            return insert(table)
        return factory(table).on_conflict_do_nothing()

    async def ping(self) -> float:
        """Read one id from the table; return the round trip in milliseconds.

        Raises whatever the driver raises when the database or the table is
        unreachable.
        """
        started = time.perf_counter()
        await self.session.execute(select(Moneyview.id).limit(1))
        return round((time.perf_counter() - started) * 1000, 2)
