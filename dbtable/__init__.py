"""dbtable: generic async table access over a DB-API connection."""

from .core import (
    INFINITY,
    Context,
    DataclassConverter,
    DbTableError,
    EmptyPayloadError,
    InvalidIdentifierError,
    ModifiedAtStamp,
    OperationKind,
    Page,
    QueryResultError,
    Statement,
    Table,
    TableDescriptor,
    TableFactory,
    TableOptions,
    bind,
    compose_inbound,
    compose_outbound,
    stream_json,
)
from .ports import AsyncDatabase, Dialect, PostgresDialect, SQLiteDialect

__version__ = "0.1.0"

__all__ = [
    "INFINITY",
    "OperationKind",
    "Page",
    "Statement",
    "Table",
    "TableFactory",
    "TableOptions",
    "TableDescriptor",
    "Context",
    "bind",
    "stream_json",
    "ModifiedAtStamp",
    "DataclassConverter",
    "compose_inbound",
    "compose_outbound",
    "DbTableError",
    "EmptyPayloadError",
    "InvalidIdentifierError",
    "QueryResultError",
    "AsyncDatabase",
    "Dialect",
    "PostgresDialect",
    "SQLiteDialect",
]
