"""Concrete SQL dialect implementations for DB-API adapters.

Statements are built with PostgreSQL `$n` placeholders. A dialect rewrites
those markers into the parameter style its driver expects just before
execution. Quoted string literals and quoted identifiers are left untouched.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence, Tuple


class Dialect:
    """Base dialect; passes `$n` statements through unchanged."""

    name: str = "generic"
    paramstyle: str = "numeric_dollar"
    server_side_cursors: bool = False

    def translate(self, sql: str, params: Optional[Sequence[Any]] = None) -> Tuple[str, Any]:
        """Rewrite `$n` placeholders and bind values for the driver."""

        values = list(params or [])
        style = self.paramstyle

        if style == "numeric_dollar":
            return sql, values
        if style == "qmark":
            return _rewrite_markers(sql, lambda n: f"?{n}"), values
        if style == "numeric":
            return _rewrite_markers(sql, lambda n: f":{n}"), values
        if style == "format":
            order: List[int] = []

            def _format_marker(n: int) -> str:
                order.append(n)
                return "%s"

            # `%` only needs doubling when the driver will interpolate params.
            text = _rewrite_markers(sql, _format_marker, escape_percent=True)
            if not order:
                return sql, []
            if max(order) > len(values):
                raise ValueError(
                    f"Statement references ${max(order)} but only {len(values)} "
                    "value(s) were bound."
                )
            return text, [values[n - 1] for n in order]
        raise ValueError(f"Unsupported paramstyle: {style}")


class SQLiteDialect(Dialect):
    """SQLite dialect (`?n` numbered parameters)."""

    name = "sqlite"
    paramstyle = "qmark"


class PostgresDialect(Dialect):
    """PostgreSQL via psycopg/psycopg2 (`%s` positional parameters).

    Streaming uses named (server-side) cursors, which require an open
    transaction on connections in autocommit mode.
    """

    name = "postgres"
    paramstyle = "format"
    server_side_cursors = True


def _rewrite_markers(
    sql: str,
    replace: Callable[[int], str],
    *,
    escape_percent: bool = False,
) -> str:
    """Replace every `$n` outside quotes with `replace(n)`."""

    out: List[str] = []
    quote: Optional[str] = None
    i = 0
    length = len(sql)
    while i < length:
        ch = sql[i]
        if escape_percent and ch == "%":
            out.append("%%")
            i += 1
            continue
        if quote is not None:
            out.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in ("'", '"'):
            quote = ch
            out.append(ch)
            i += 1
            continue
        if ch == "$" and i + 1 < length and sql[i + 1].isdigit():
            j = i + 1
            while j < length and sql[j].isdigit():
                j += 1
            out.append(replace(int(sql[i + 1 : j])))
            i = j
            continue
        out.append(ch)
        i += 1
    return "".join(out)
