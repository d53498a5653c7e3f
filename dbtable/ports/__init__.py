"""Public port exports for concrete adapter implementations."""

from .db_api import AsyncDatabase, Dialect, PostgresDialect, SQLiteDialect

__all__ = [
    "AsyncDatabase",
    "Dialect",
    "PostgresDialect",
    "SQLiteDialect",
]
