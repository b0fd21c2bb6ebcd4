"""Models package - SQLAlchemy ORM models."""
from .moneyview import Moneyview

__all__ = [
    "Moneyview",
]
