"""DB-API adapter and dialect exports."""

from .async_database import AsyncDatabase
from .dialects import Dialect, PostgresDialect, SQLiteDialect

__all__ = [
    "AsyncDatabase",
    "Dialect",
    "PostgresDialect",
    "SQLiteDialect",
]
