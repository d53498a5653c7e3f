"""SQL statement builders for table handles.

This module centralizes SQL string compilation from payloads, filters,
identifiers, and pages. It keeps `Table` focused on orchestration and
conversion while making statement generation testable without a database.

All statements use PostgreSQL conventions: double-quoted identifiers,
contiguous `$1..$n` placeholders, `returning` on writes, and
`offset <n> limit <m>` pagination.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

from .codecs import encode_payload, quote_identifier
from .errors import EmptyPayloadError, InvalidIdentifierError
from .types import Filter, Identifier, Page, PageInput, Payload, PositionalParams

Projection = Union[str, Sequence[str], None]


@dataclass(frozen=True)
class Statement:
    """SQL text and bind values whose order matches the `$n` markers."""

    sql: str
    params: PositionalParams = field(default_factory=list)


@dataclass(frozen=True)
class ResolvedIdentifier:
    """Concrete `(column, value)` key produced by identifier resolution."""

    column: str
    value: Any

    @property
    def column_sql(self) -> str:
        return quote_identifier(self.column)


def resolve_identifier(identifier: Identifier, *, id_field: str = "id") -> ResolvedIdentifier:
    """Resolve a scalar or mapping identifier into one key column.

    A scalar targets `id_field`. A mapping with exactly one entry targets that
    column. A mapping with several entries is accepted only when it holds
    `id_field`, in which case every other entry is ignored.

    Raises:
        InvalidIdentifierError: Empty mapping, or several entries without
            `id_field`.
    """

    if isinstance(identifier, ResolvedIdentifier):
        return identifier

    if not isinstance(identifier, Mapping):
        return ResolvedIdentifier(id_field, identifier)

    if id_field in identifier:
        return ResolvedIdentifier(id_field, identifier[id_field])

    keys = list(identifier.keys())
    if len(keys) != 1:
        raise InvalidIdentifierError(
            f"invalid identifier: expected one key or an {id_field!r} key, got {keys!r}."
        )
    return ResolvedIdentifier(keys[0], identifier[keys[0]])


def format_projection(projection: Projection) -> str:
    """Render the column list returned by selects and `returning` clauses."""

    if projection is None:
        return "*"
    if isinstance(projection, str):
        return projection or "*"
    columns = list(projection)
    if not columns:
        return "*"
    return ", ".join(quote_identifier(name) for name in columns)


def pagination_clause(page: PageInput) -> str:
    """Return ` offset <n> limit <m>` or an empty string when not paginated."""

    resolved = Page.coerce(page)
    if resolved is None:
        return ""
    return f" offset {resolved.offset} limit {resolved.limit}"


def build_insert(table: str, payload: Payload, *, projection: Projection = None) -> Statement:
    """Build `insert ... returning` for one payload."""

    encoded = encode_payload(payload)
    if not encoded:
        raise EmptyPayloadError(f"Cannot insert into {table} without any columns.")

    return Statement(
        f"insert into {table} ({','.join(encoded.columns)}) "
        f"values ({','.join(encoded.placeholders)}) "
        f"returning {format_projection(projection)}",
        list(encoded.values),
    )


def build_update(
    table: str,
    identifier: Identifier,
    payload: Payload,
    *,
    projection: Projection = None,
    id_field: str = "id",
) -> Statement:
    """Build `update ... returning` with the key value bound last."""

    key = resolve_identifier(identifier, id_field=id_field)
    encoded = encode_payload(payload)
    if not encoded:
        raise EmptyPayloadError(f"Cannot update {table} without any columns.")

    assignments = ", ".join(
        f"{column} = {placeholder}"
        for column, placeholder in zip(encoded.columns, encoded.placeholders)
    )
    params = list(encoded.values)
    params.append(key.value)
    return Statement(
        f"update {table} set {assignments} "
        f"where {key.column_sql} = ${len(params)} "
        f"returning {format_projection(projection)}",
        params,
    )


def build_delete(table: str, identifier: Identifier, *, id_field: str = "id") -> Statement:
    """Build `delete` for one resolved key."""

    key = resolve_identifier(identifier, id_field=id_field)
    return Statement(f"delete from {table} where {key.column_sql} = $1", [key.value])


def compile_filter(filter: Filter) -> Statement:
    """Compile an equality filter into a predicate without the `where` keyword.

    Null values (after coercion, so `''` as well) compile to `is null` and
    bind nothing; bind numbers count only the remaining fields so they stay
    contiguous.
    """

    if not filter:
        return Statement("")

    encoded = encode_payload(filter)
    clauses: List[str] = []
    params: PositionalParams = []
    for column, value in zip(encoded.columns, encoded.values):
        if value is None:
            clauses.append(f"{column} is null")
            continue
        params.append(value)
        clauses.append(f"{column} = ${len(params)}")

    return Statement(" and ".join(clauses), params)


def build_select(
    table: str,
    filter: Filter = None,
    page: PageInput = None,
    *,
    projection: Projection = None,
) -> Statement:
    """Build a select with an optional equality filter and page."""

    sql = f"select {format_projection(projection)} from {table}"
    predicate = compile_filter(filter)
    if predicate.sql:
        sql += f" where {predicate.sql}"
    return Statement(sql + pagination_clause(page), predicate.params)


def build_raw_select(
    table: str,
    where: str,
    values: Optional[Sequence[Any]] = None,
    *,
    projection: Projection = None,
) -> Statement:
    """Build a select around a caller-supplied predicate and its bind values."""

    return Statement(
        f"select {format_projection(projection)} from {table} where {where}",
        list(values or []),
    )
