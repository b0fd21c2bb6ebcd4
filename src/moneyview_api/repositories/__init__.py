"""Repositories package - Data access layer."""
from .moneyview_repository import MoneyviewRepository

__all__ = [
    "MoneyviewRepository",
]
