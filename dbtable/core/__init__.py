"""Public core API for statement building, table handles, and contexts."""

from .codecs import EncodedPayload, coerce_value, encode_payload, quote_identifier
from .context import Context, TableDescriptor, bind
from .contracts import ConnectionPort, DialectPort
from .converters import (
    InboundConverter,
    ModifiedAtStamp,
    OutboundConverter,
    QueryConverter,
    compose_inbound,
    compose_outbound,
)
from .errors import DbTableError, EmptyPayloadError, InvalidIdentifierError, QueryResultError
from .factory import TableFactory, TableOptions
from .model_codecs import DataclassConverter
from .query_builder import (
    ResolvedIdentifier,
    Statement,
    build_delete,
    build_insert,
    build_raw_select,
    build_select,
    build_update,
    compile_filter,
    format_projection,
    pagination_clause,
    resolve_identifier,
)
from .streaming import stream_json
from .table import Table
from .types import INFINITY, OperationKind, Page

__all__ = [
    "INFINITY",
    "OperationKind",
    "Page",
    "EncodedPayload",
    "coerce_value",
    "encode_payload",
    "quote_identifier",
    "Statement",
    "ResolvedIdentifier",
    "build_insert",
    "build_update",
    "build_delete",
    "build_select",
    "build_raw_select",
    "compile_filter",
    "format_projection",
    "pagination_clause",
    "resolve_identifier",
    "InboundConverter",
    "OutboundConverter",
    "QueryConverter",
    "ModifiedAtStamp",
    "compose_inbound",
    "compose_outbound",
    "DataclassConverter",
    "Table",
    "TableFactory",
    "TableOptions",
    "Context",
    "TableDescriptor",
    "bind",
    "stream_json",
    "ConnectionPort",
    "DialectPort",
    "DbTableError",
    "EmptyPayloadError",
    "InvalidIdentifierError",
    "QueryResultError",
]
