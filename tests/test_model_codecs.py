from __future__ import annotations

import math
import unittest
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from dbtable import DataclassConverter, OperationKind, Table, compose_inbound, compose_outbound
from dbtable.core.converters import ModifiedAtStamp
from tests.table_test_helpers import seeded_sqlite


class Status(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class Ticket:
    id: Optional[int] = None
    status: Status = Status.OPEN
    payload: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    note: Optional[str] = field(default=None, metadata={"codec": "json"})


@dataclass
class Window:
    id: Optional[int] = None
    validFrom: Optional[str] = None
    validTo: Optional[str] = None


class DataclassConverterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.converter = DataclassConverter(Ticket)

    def test_requires_dataclass(self) -> None:
        with self.assertRaises(TypeError):
            DataclassConverter(dict)  # type: ignore[arg-type]

    def test_inbound_serializes_enum_and_json(self) -> None:
        payload = self.converter.inbound(
            {"status": Status.CLOSED, "payload": {"a": 1}, "tags": ["x"], "extra": 1},
            OperationKind.INSERT,
        )
        self.assertEqual(
            payload,
            {"status": "closed", "payload": '{"a": 1}', "tags": '["x"]', "extra": 1},
        )

    def test_inbound_accepts_enum_member_names(self) -> None:
        payload = self.converter.inbound({"status": "CLOSED"}, OperationKind.UPDATE)
        self.assertEqual(payload, {"status": "closed"})

    def test_invalid_enum_value_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.converter.inbound({"status": "nope"}, OperationKind.INSERT)
        with self.assertRaises(ValueError):
            self.converter.outbound({"status": "nope"}, OperationKind.QUERY)

    def test_outbound_builds_model_and_ignores_unknown_columns(self) -> None:
        ticket = self.converter.outbound(
            {"id": 1, "status": "open", "payload": '{"k": [1]}', "tags": "[]", "createdAt": "x"},
            OperationKind.QUERY,
        )
        self.assertEqual(ticket, Ticket(id=1, status=Status.OPEN, payload={"k": [1]}, tags=[]))

    def test_invalid_json_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.converter.outbound({"payload": "{not json"}, OperationKind.QUERY)

    def test_unsupported_declared_codec_raises(self) -> None:
        @dataclass
        class Broken:
            blob: Optional[str] = field(default=None, metadata={"codec": "yaml"})

        with self.assertRaises(ValueError):
            DataclassConverter(Broken)

    def test_metadata_json_field_round_trips(self) -> None:
        payload = self.converter.inbound({"note": ["a"]}, OperationKind.INSERT)
        self.assertEqual(payload, {"note": '["a"]'})
        ticket = self.converter.outbound({"note": '["a"]'}, OperationKind.QUERY)
        self.assertEqual(ticket.note, ["a"])

    def test_to_payload(self) -> None:
        self.assertEqual(
            self.converter.to_payload(Ticket(id=3)),
            {"id": 3, "status": Status.OPEN, "payload": {}, "tags": [], "note": None},
        )


class ComposeTests(unittest.TestCase):
    def test_compose_inbound_runs_left_to_right(self) -> None:
        converter = compose_inbound(
            ModifiedAtStamp(clock=lambda: "now"),
            None,
            lambda payload, op: {**payload, "seen": op.value},
        )
        self.assertEqual(
            converter({"a": 1}, OperationKind.UPDATE),
            {"a": 1, "modifiedAt": "now", "seen": "update"},
        )
        self.assertEqual(converter({"a": 1}, OperationKind.INSERT), {"a": 1, "seen": "insert"})

    def test_compose_outbound(self) -> None:
        converter = compose_outbound(
            lambda row, op: dict(row, n=row["n"] + 1),
            lambda row, op: row["n"],
        )
        self.assertEqual(converter({"n": 1}, OperationKind.QUERY), 2)


class RoundTripTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.conn, self.db = seeded_sqlite()
        converter = DataclassConverter(Window)
        self.table = Table(
            "timestamps", self.db, inbound=converter.inbound, outbound=converter.outbound
        )

    async def asyncTearDown(self) -> None:
        self.conn.close()

    async def test_insert_then_read_reproduces_payload(self) -> None:
        payload = {"validFrom": "2024-01-01", "validTo": math.inf}

        inserted = await self.table.insert(payload)
        fetched = await self.table.by_id(inserted.id)

        self.assertEqual(fetched, inserted)
        self.assertEqual(fetched.validFrom, "2024-01-01")
        self.assertEqual(fetched.validTo, "infinity")


if __name__ == "__main__":
    unittest.main()
