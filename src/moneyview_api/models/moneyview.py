"""Moneyview lead model (PostgreSQL).

Maps the partner-owned ``moneyview`` table. Every profile column is a
nullable string exactly as the partner submits it; ``partner_id`` is the
only required column.

Phone and PAN are the dedup keys. The unique constraints below describe the
intended schema; NULLs never collide, so rows without a phone (or without a
PAN) can coexist.
"""
from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base


class Moneyview(Base):
    """Moneyview table - one row per ingested partner lead."""

    __tablename__ = "moneyview"
    __table_args__ = (
        UniqueConstraint("phone", name="uq_moneyview_phone"),
        UniqueConstraint("pan", name="uq_moneyview_pan"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    employment: Mapped[str | None] = mapped_column(String, nullable=True)
    pan: Mapped[str | None] = mapped_column(String, nullable=True)
    pincode: Mapped[str | None] = mapped_column(String, nullable=True)
    income: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    dob: Mapped[str | None] = mapped_column(String, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)

    partner_id: Mapped[str] = mapped_column(String, nullable=False)

    def __repr__(self) -> str:
        return f"<Moneyview id={self.id} phone={self.phone!r} pan={self.pan!r}>"
