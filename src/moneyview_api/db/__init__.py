"""Database package - Engine, per-request sessions and declarative base."""
from .session import (
    Base,
    DbSession,
    LeadDatabase,
    close_db,
    get_database,
    get_db,
)

__all__ = [
    "Base",
    "DbSession",
    "LeadDatabase",
    "close_db",
    "get_database",
    "get_db",
]
