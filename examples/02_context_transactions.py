"""Context example: named tables, converters, and transaction scopes."""

from __future__ import annotations

import asyncio
import sqlite3
from dataclasses import dataclass
from typing import Optional

from dbtable import (
    AsyncDatabase,
    Context,
    DataclassConverter,
    ModifiedAtStamp,
    SQLiteDialect,
    TableFactory,
    TableOptions,
    compose_inbound,
)


@dataclass
class Account:
    id: Optional[int] = None
    owner: str = ""
    balance: int = 0
    modifiedAt: Optional[str] = None


def build_factory() -> TableFactory:
    accounts = DataclassConverter(Account)
    return TableFactory(
        {
            "accounts": TableOptions(
                inbound=compose_inbound(accounts.inbound, ModifiedAtStamp(clock=lambda: "now")),
                outbound=accounts.outbound,
            )
        }
    )


async def main() -> None:
    conn = sqlite3.connect(":memory:")
    conn.execute(
        'CREATE TABLE "accounts" ("id" INTEGER PRIMARY KEY, "owner" TEXT, '
        '"balance" INTEGER, "modifiedAt" TEXT);'
    )
    db = AsyncDatabase(conn, SQLiteDialect())
    ctx = Context(db, [{"tableName": "accounts", "refName": "accounts"}], build_factory())

    try:
        a = await ctx.accounts.insert({"owner": "alice", "balance": 100})
        b = await ctx.accounts.insert({"owner": "bob", "balance": 0})

        async def transfer(tx) -> None:  # noqa: ANN001
            await tx.accounts.update(a.id, {"balance": a.balance - 40})
            await tx.accounts.update(b.id, {"balance": b.balance + 40})

        await ctx.in_transaction(transfer)
        print("After transfer:", await ctx.accounts.all())

        async def broken(tx) -> None:  # noqa: ANN001
            await tx.accounts.update(a.id, {"balance": 0})
            raise RuntimeError("force rollback")

        try:
            await ctx.in_transaction(broken)
        except RuntimeError:
            print("Rolled back:", await ctx.accounts.by_id(a.id))

        print("Both owners:", await ctx.accounts.multi_query([{"owner": "alice"}, {"owner": "bob"}]))
    finally:
        conn.close()


if __name__ == "__main__":
    asyncio.run(main())
