"""Exceptions raised by table handles and the connection adapter."""

from __future__ import annotations


class DbTableError(Exception):
    """Base class for errors raised by dbtable itself."""


class InvalidIdentifierError(DbTableError, ValueError):
    """Raised when an identifier cannot be resolved to one key column."""


class EmptyPayloadError(DbTableError, ValueError):
    """Raised when an insert or update has no columns to write."""


class QueryResultError(DbTableError, RuntimeError):
    """Raised when a statement returns a row count its caller does not accept."""

    def __init__(self, message: str, *, expected: str, received: int):
        super().__init__(message)
        self.expected = expected
        self.received = received
