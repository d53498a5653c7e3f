"""Async DB-API adapter implementing the connection primitive used by tables."""

from __future__ import annotations

import contextlib
import itertools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, TypeVar

from ...core._async_utils import _close_quietly, _maybe_await
from ...core.contracts import DialectPort
from ...core.errors import QueryResultError
from ...core.streaming import DEFAULT_BATCH_SIZE
from ...core.types import MaybeRow, QueryParams, RowMapping, Rows

logger = logging.getLogger(__name__)

R = TypeVar("R")

_cursor_ids = itertools.count(1)


class AsyncDatabase:
    """Async database wrapper over a DB-API connection (sync or async driver).

    Statements use `$n` placeholders; the dialect rewrites them for the
    driver. Rows are normalized to mappings.

    Outside `transaction()` every statement is its own unit: the driver's
    implicit transaction is committed after it succeeds and rolled back after
    it fails.
    """

    def __init__(self, conn: Any, dialect: DialectPort, *, _depth: int = 0):
        """Create async database adapter.

        Args:
            conn: Async (or sync) DB-API connection object.
            dialect: Concrete SQL dialect instance.
        """

        self.conn = conn
        self.dialect = dialect
        self._depth = _depth
        self._closed = False

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _should_begin_sqlite_transaction(self) -> bool:
        if getattr(self.dialect, "name", "").lower() != "sqlite":
            return False
        return not bool(getattr(self.conn, "in_transaction", False))

    async def _finish_statement(self, *, commit: bool) -> None:
        """End the driver's implicit transaction for a statement run outside `transaction()`.

        Drivers in autocommit mode, and sqlite connections with nothing
        pending, are left alone.
        """

        if self._depth or getattr(self.conn, "autocommit", False) is True:
            return
        if not getattr(self.conn, "in_transaction", True):
            return
        if commit:
            await _maybe_await(self.conn.commit())
        else:
            logger.debug("rollback after failed statement")
            await _maybe_await(self.conn.rollback())

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncDatabase]:
        """Provide a commit/rollback scope yielding a transaction-bound adapter.

        Nested scopes use savepoints.
        """

        child = AsyncDatabase(self.conn, self.dialect, _depth=self._depth + 1)
        if self._depth:
            savepoint = f"dbtable_sp_{self._depth}"
            await self.none(f"savepoint {savepoint}")
            try:
                yield child
            except BaseException:
                logger.debug("rollback to savepoint %s", savepoint)
                await self.none(f"rollback to savepoint {savepoint}")
                raise
            else:
                await self.none(f"release savepoint {savepoint}")
            return

        if self._should_begin_sqlite_transaction():
            await _maybe_await(self.conn.execute("BEGIN"))
        logger.debug("transaction begin")
        try:
            yield child
        except BaseException:
            logger.debug("transaction rollback")
            await _maybe_await(self.conn.rollback())
            raise
        else:
            await _maybe_await(self.conn.commit())
            logger.debug("transaction commit")

    async def tx(self, fn: Callable[[AsyncDatabase], Awaitable[R]]) -> R:
        """Run `fn` inside a transaction; commit on return, roll back on error."""

        async with self.transaction() as transaction:
            return await fn(transaction)

    async def execute(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        cursor_name: str | None = None,
    ) -> Any:
        """Execute SQL with optional `$n` parameters and return cursor."""

        if self._closed:
            raise RuntimeError("connection is closed")
        driver_sql, driver_params = self.dialect.translate(sql, params)
        logger.debug("SQL: %s args: %r", sql, params)

        if cursor_name is None:
            cur = await _maybe_await(self.conn.cursor())
        else:
            cur = await _maybe_await(self.conn.cursor(name=cursor_name))
        try:
            if driver_params:
                await _maybe_await(cur.execute(driver_sql, driver_params))
            else:
                await _maybe_await(cur.execute(driver_sql))
        except BaseException:
            logger.error("Error with query:\nSQL: %s\nargs: %r", sql, params)
            await _close_quietly(cur)
            await self._finish_statement(commit=False)
            raise
        return cur

    def _row_to_mapping(self, cursor: Any, row: Any) -> RowMapping:
        """Normalize row object to mapping.

        Supports mapping rows directly and tuple/list rows via
        `cursor.description`.
        """

        if isinstance(row, Mapping):
            return row

        if isinstance(row, (tuple, list)):
            desc = getattr(cursor, "description", None)
            if not desc:
                raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
            cols = [d[0] for d in desc]
            return dict(zip(cols, row, strict=True))

        try:
            return dict(row)
        except (TypeError, ValueError):
            pass

        raise TypeError(f"Unsupported row type: {type(row)}")

    async def many_or_none(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute query and return all rows, possibly none."""

        cur = await self.execute(sql, params)
        try:
            rows = await _maybe_await(cur.fetchall())
            result = [self._row_to_mapping(cur, r) for r in rows]
        except BaseException:
            await _close_quietly(cur)
            await self._finish_statement(commit=False)
            raise
        await _close_quietly(cur)
        await self._finish_statement(commit=True)
        return result

    async def many(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute query and return all rows; no rows is an error."""

        rows = await self.many_or_none(sql, params)
        if not rows:
            raise QueryResultError("No data returned from the query.", expected="many", received=0)
        return rows

    async def one(self, sql: str, params: QueryParams = None) -> RowMapping:
        """Execute query that must return exactly one row."""

        rows = await self.many_or_none(sql, params)
        if len(rows) != 1:
            raise QueryResultError(
                f"Expected exactly one row, got {len(rows)}.",
                expected="one",
                received=len(rows),
            )
        return rows[0]

    async def one_or_none(self, sql: str, params: QueryParams = None) -> MaybeRow:
        """Execute query that may return at most one row."""

        rows = await self.many_or_none(sql, params)
        if len(rows) > 1:
            raise QueryResultError(
                f"Expected at most one row, got {len(rows)}.",
                expected="one_or_none",
                received=len(rows),
            )
        return rows[0] if rows else None

    async def none(self, sql: str, params: QueryParams = None) -> None:
        """Execute statement whose result rows, if any, are discarded."""

        cur = await self.execute(sql, params)
        await _close_quietly(cur)
        await self._finish_statement(commit=True)

    async def stream(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> AsyncIterator[RowMapping]:
        """Yield rows one `fetchmany` batch at a time.

        Dialects with `server_side_cursors` open a named cursor so the server
        keeps the result set.
        """

        if batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        cursor_name = None
        if getattr(self.dialect, "server_side_cursors", False):
            cursor_name = f"dbtable_stream_{next(_cursor_ids)}"

        cur = await self.execute(sql, params, cursor_name=cursor_name)
        completed = False
        try:
            while True:
                batch = await _maybe_await(cur.fetchmany(batch_size))
                if not batch:
                    break
                for row in batch:
                    yield self._row_to_mapping(cur, row)
            completed = True
        finally:
            await _close_quietly(cur)
            await self._finish_statement(commit=completed)

    async def aclose(self) -> None:
        """Close underlying connection; transaction-bound adapters leave it open."""

        if self._closed:
            return
        self._closed = True
        if self._depth:
            return
        await _close_quietly(self.conn)

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"AsyncDatabase(dialect={self.dialect.name!r}, depth={self._depth})"
