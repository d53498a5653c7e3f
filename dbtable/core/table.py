"""Table handle: CRUD and filtered queries for one table without hand-written SQL."""

from __future__ import annotations

import asyncio
import copy
import itertools
import logging
from typing import Any, Dict, List, Optional, Sequence

from .contracts import ConnectionPort
from .converters import (
    InboundConverter,
    OutboundConverter,
    QueryConverter,
    identity_inbound,
    identity_outbound,
    identity_query,
)
from .query_builder import (
    Projection,
    build_delete,
    build_insert,
    build_raw_select,
    build_select,
    build_update,
    resolve_identifier,
)
from .streaming import DEFAULT_BATCH_SIZE, stream_json
from .types import Filter, Identifier, MaybeRow, OperationKind, PageInput, Payload, Rows

logger = logging.getLogger(__name__)


class Table:
    """Async CRUD handle bound to one table and one connection.

    Every method takes `transform`; when false, converter hooks are bypassed
    and raw rows are returned.
    """

    def __init__(
        self,
        table_name: str,
        connection: ConnectionPort,
        projection: Projection = None,
        *,
        inbound: Optional[InboundConverter] = None,
        outbound: Optional[OutboundConverter] = None,
        query_converter: Optional[QueryConverter] = None,
        created_at_field: Optional[str] = "createdAt",
        id_field: str = "id",
    ):
        """Create a table handle.

        Args:
            table_name: Table name, emitted verbatim (may be schema-qualified).
            connection: Execution primitive or an active transaction.
            projection: Column list or `*` for selects and `returning`.
            inbound: Hook applied to payloads before insert/update.
            outbound: Hook applied to every returned row.
            query_converter: Hook applied to filters before compilation.
            created_at_field: Server-assigned column never sent on insert.
            id_field: Key column for scalar identifiers and `by_id`.
        """

        self.table_name = table_name
        self.connection = connection
        self.projection = projection
        self.inbound = inbound or identity_inbound
        self.outbound = outbound or identity_outbound
        self.query_converter = query_converter or identity_query
        self.created_at_field = created_at_field
        self.id_field = id_field

    def rebind(self, connection: ConnectionPort) -> Table:
        """Return a copy of this handle bound to another connection."""

        clone = copy.copy(self)
        clone.connection = connection
        return clone

    async def insert(
        self,
        payload: Payload,
        transform: bool = True,
        allow_pk_insert: bool = False,
    ) -> Any:
        """Insert one row and return it as stored."""

        data: Dict[str, Any] = dict(payload)
        if not allow_pk_insert:
            data.pop(self.id_field, None)
        if transform:
            data = dict(self.inbound(data, OperationKind.INSERT))
        if self.created_at_field:
            data.pop(self.created_at_field, None)

        statement = build_insert(self.table_name, data, projection=self.projection)
        logger.debug("insert into %s: %d column(s)", self.table_name, len(data))
        row = await self.connection.one(statement.sql, statement.params)
        return self._convert(row, OperationKind.INSERT, transform)

    async def update(self, identifier: Identifier, payload: Payload, transform: bool = True) -> Any:
        """Update exactly one row by identifier and return it."""

        key = resolve_identifier(identifier, id_field=self.id_field)
        data: Payload = dict(payload)
        if transform:
            data = self.inbound(data, OperationKind.UPDATE)

        statement = build_update(
            self.table_name,
            key,
            data,
            projection=self.projection,
            id_field=self.id_field,
        )
        logger.debug("update %s where %s", self.table_name, key.column)
        row = await self.connection.one(statement.sql, statement.params)
        return self._convert(row, OperationKind.UPDATE, transform)

    async def delete(self, identifier: Identifier) -> None:
        """Delete the rows at one key; deleting nothing is not an error."""

        statement = build_delete(self.table_name, identifier, id_field=self.id_field)
        logger.debug("delete from %s", self.table_name)
        await self.connection.none(statement.sql, statement.params)

    async def by_id(self, id: Any, transform: bool = True) -> Any:
        return await self.one({self.id_field: id}, transform)

    async def all(self, page: PageInput = None, transform: bool = True) -> List[Any]:
        """Read every row, optionally one page of them."""

        statement = build_select(self.table_name, None, page, projection=self.projection)
        rows = await self.connection.many_or_none(statement.sql, statement.params)
        return self._convert_rows(rows, transform)

    async def query(
        self,
        filter: Filter = None,
        page: PageInput = None,
        transform: bool = True,
    ) -> List[Any]:
        """Read rows matching every equality in `filter`.

        `None` values match SQL nulls. An empty filter reads all rows.
        """

        if not filter:
            return await self.all(page, transform)
        if transform:
            filter = self.query_converter(filter)

        statement = build_select(self.table_name, filter, page, projection=self.projection)
        rows = await self.connection.many_or_none(statement.sql, statement.params)
        return self._convert_rows(rows, transform)

    async def many(
        self,
        filter: Filter = None,
        page: PageInput = None,
        transform: bool = True,
    ) -> List[Any]:
        return await self.query(filter, page, transform)

    async def one(self, filter: Filter, transform: bool = True) -> Any:
        """Return the first matching row, or `None` when nothing matches."""

        rows = await self.query(filter, None, transform)
        return rows[0] if rows else None

    async def raw_where(
        self,
        where: str,
        values: Optional[Sequence[Any]] = None,
        transform: bool = True,
    ) -> List[Any]:
        """Read rows matching a hand-written predicate with `$n` binds."""

        statement = build_raw_select(self.table_name, where, values, projection=self.projection)
        rows = await self.connection.many_or_none(statement.sql, statement.params)
        return self._convert_rows(rows, transform)

    async def raw_where_one(
        self,
        where: str,
        values: Optional[Sequence[Any]] = None,
        transform: bool = True,
    ) -> Any:
        """Read zero or one row matching a hand-written predicate."""

        statement = build_raw_select(self.table_name, where, values, projection=self.projection)
        row = await self.connection.one_or_none(statement.sql, statement.params)
        return self._convert(row, OperationKind.QUERY, transform)

    async def multi_query(self, filters: Sequence[Filter], transform: bool = True) -> List[Any]:
        """Run one query per filter concurrently and concatenate in input order.

        The first failure cancels the queries still running and is re-raised.
        """

        tasks = [
            asyncio.ensure_future(self.query(filter, None, transform)) for filter in filters
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return list(itertools.chain.from_iterable(results))

    async def stream_json(
        self,
        sink: Any,
        filter: Filter = None,
        transform: bool = True,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> int:
        """Write matching rows to `sink` as a JSON array without buffering them.

        `transform` only governs the query converter. Rows are written as the
        connection returns them; the outbound converter never runs here.
        """

        if filter and transform:
            filter = self.query_converter(filter)
        statement = build_select(self.table_name, filter, projection=self.projection)
        return await stream_json(
            self.connection,
            statement.sql,
            statement.params,
            sink,
            batch_size=batch_size,
        )

    def _convert(self, row: MaybeRow, operation: OperationKind, transform: bool) -> Any:
        if row is None or not transform:
            return row
        return self.outbound(row, operation)

    def _convert_rows(self, rows: Rows, transform: bool) -> List[Any]:
        if not transform:
            return list(rows)
        return [self.outbound(row, OperationKind.QUERY) for row in rows]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.table_name!r})"
