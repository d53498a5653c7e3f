"""Basic CRUD example for a dbtable Table over sqlite."""

from __future__ import annotations

import asyncio
import math
import sqlite3
import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "dbtable").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dbtable import AsyncDatabase, SQLiteDialect, Table


async def main() -> None:
    # 1) Create DB adapter and table handle.
    conn = sqlite3.connect(":memory:")
    conn.execute(
        'CREATE TABLE "users" ("id" INTEGER PRIMARY KEY, "email" TEXT, "age" INTEGER, '
        '"validTo" TEXT, "createdAt" TEXT DEFAULT CURRENT_TIMESTAMP);'
    )
    db = AsyncDatabase(conn, SQLiteDialect())
    users = Table("users", db)

    try:
        # 2) Insert rows. `id` and `createdAt` are assigned by the database.
        alice = await users.insert({"email": "alice@example.com", "age": 25, "validTo": math.inf})
        bob = await users.insert({"email": "bob@example.com", "age": None})
        print("Inserted:", alice, bob)

        # 3) Get by id and by filter; `None` matches SQL nulls.
        print("By id:", await users.by_id(alice["id"]))
        print("Without age:", await users.query({"age": None}))

        # 4) Update exactly one row.
        print("Updated:", await users.update(bob["id"], {"age": 31}))

        # 5) Predicates the filter cannot express.
        print("Adults:", await users.raw_where('"age" >= $1', [18]))

        # 6) Delete by id (extra keys next to `id` are ignored).
        await users.delete({"id": alice["id"], "email": "ignored"})
        print("After delete:", await users.all())
    finally:
        conn.close()


if __name__ == "__main__":
    asyncio.run(main())
