from __future__ import annotations

import asyncio
import sqlite3
from typing import Any, Callable, Optional

from dbtable import AsyncDatabase, SQLiteDialect

SEED_SQL = """
CREATE TABLE "test" (
    "id" INTEGER PRIMARY KEY,
    "stringCol" TEXT,
    "integerCol" INTEGER,
    "createdAt" TEXT DEFAULT 'server',
    "modifiedAt" TEXT
);
INSERT INTO "test" ("stringCol", "integerCol") VALUES ('a', 1);
INSERT INTO "test" ("stringCol", "integerCol") VALUES (NULL, 1);
INSERT INTO "test" ("stringCol", "integerCol") VALUES ('c', 2);

CREATE TABLE "timestamps" (
    "id" INTEGER PRIMARY KEY,
    "validFrom" TEXT,
    "validTo" TEXT
);
INSERT INTO "timestamps" ("id", "validFrom", "validTo") VALUES (1, '2020-01-01', NULL);
INSERT INTO "timestamps" ("id", "validFrom", "validTo") VALUES (2, '2021-01-01', NULL);
INSERT INTO "timestamps" ("id", "validFrom", "validTo") VALUES (3, '2022-01-01', NULL);
"""


def seeded_sqlite() -> tuple[sqlite3.Connection, AsyncDatabase]:
    """Return an in-memory sqlite connection with the seed tables committed."""

    conn = sqlite3.connect(":memory:")
    conn.executescript(SEED_SQL)
    conn.commit()
    return conn, AsyncDatabase(conn, SQLiteDialect())


class RecordingConnection:
    """Connection double that records statements and returns canned rows.

    `rows` is either a list returned for every read, or a callable receiving
    `(sql, params)`. `delay` may return a per-call sleep in seconds.
    """

    def __init__(
        self,
        rows: Any = None,
        *,
        delay: Optional[Callable[[str, list], float]] = None,
    ):
        self.rows = rows if rows is not None else []
        self.delay = delay
        self.calls: list[tuple[str, str, list]] = []
        self.transactions: list[RecordingConnection] = []
        self.committed = 0
        self.rolled_back = 0

    async def _rows(self, method: str, sql: str, params: Any) -> list:
        bound = list(params or [])
        self.calls.append((method, sql, bound))
        if self.delay is not None:
            await asyncio.sleep(self.delay(sql, bound))
        rows = self.rows(sql, bound) if callable(self.rows) else self.rows
        return [dict(row) for row in rows]

    async def one(self, sql: str, params: Any = None) -> dict:
        rows = await self._rows("one", sql, params)
        return rows[0]

    async def one_or_none(self, sql: str, params: Any = None) -> Optional[dict]:
        rows = await self._rows("one_or_none", sql, params)
        return rows[0] if rows else None

    async def many_or_none(self, sql: str, params: Any = None) -> list:
        return await self._rows("many_or_none", sql, params)

    async def none(self, sql: str, params: Any = None) -> None:
        await self._rows("none", sql, params)

    async def tx(self, fn: Any) -> Any:
        child = RecordingConnection(self.rows, delay=self.delay)
        self.transactions.append(child)
        try:
            result = await fn(child)
        except BaseException:
            self.rolled_back += 1
            raise
        self.committed += 1
        return result

    async def stream(self, sql: str, params: Any = None, *, batch_size: int = 500):
        for row in await self._rows("stream", sql, params):
            yield row

    @property
    def last_sql(self) -> str:
        return self.calls[-1][1]

    @property
    def last_params(self) -> list:
        return self.calls[-1][2]
