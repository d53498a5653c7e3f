"""Streaming example: export a table as a JSON array without buffering it."""

from __future__ import annotations

import asyncio
import sqlite3
import sys

from dbtable import AsyncDatabase, SQLiteDialect, Table


async def main() -> None:
    conn = sqlite3.connect(":memory:")
    conn.execute('CREATE TABLE "events" ("id" INTEGER PRIMARY KEY, "kind" TEXT);')
    conn.executemany('INSERT INTO "events" ("kind") VALUES (?);', [("click",), ("view",)] * 5)
    conn.commit()

    events = Table("events", AsyncDatabase(conn, SQLiteDialect()))
    try:
        count = await events.stream_json(sys.stdout, {"kind": "click"}, batch_size=2)
        print(f"\nExported {count} row(s).")
    finally:
        conn.close()


if __name__ == "__main__":
    asyncio.run(main())
