from __future__ import annotations

import io
import json
import unittest
from datetime import datetime
from decimal import Decimal

from dbtable import Table, stream_json
from tests.table_test_helpers import RecordingConnection, seeded_sqlite


class _AsyncSink:
    def __init__(self) -> None:
        self.chunks: list[str] = []

    async def write(self, chunk: str) -> None:
        self.chunks.append(chunk)


class StreamJsonTests(unittest.IsolatedAsyncioTestCase):
    async def test_writes_one_json_array_incrementally(self) -> None:
        connection = RecordingConnection([{"id": 1}, {"id": 2}, {"id": 3}])
        sink = _AsyncSink()

        count = await stream_json(connection, "select * from t", None, sink)

        self.assertEqual(count, 3)
        self.assertEqual(sink.chunks, ["[", '{"id": 1}', ',{"id": 2}', ',{"id": 3}', "]"])
        self.assertEqual(json.loads("".join(sink.chunks)), [{"id": 1}, {"id": 2}, {"id": 3}])

    async def test_empty_result_is_empty_array(self) -> None:
        sink = io.StringIO()
        count = await stream_json(RecordingConnection(), "select * from t", [], sink)

        self.assertEqual(count, 0)
        self.assertEqual(sink.getvalue(), "[]")

    async def test_non_json_values_are_stringified(self) -> None:
        connection = RecordingConnection(
            [{"at": datetime(2024, 1, 2, 3, 4, 5), "amount": Decimal("1.50")}]
        )
        sink = io.StringIO()

        await stream_json(connection, "select * from t", None, sink)

        self.assertEqual(
            json.loads(sink.getvalue()),
            [{"at": "2024-01-02 03:04:05", "amount": "1.50"}],
        )

    async def test_passes_statement_and_batch_size(self) -> None:
        connection = RecordingConnection()
        await stream_json(connection, 'select * from t where "a" = $1', [1], io.StringIO(), batch_size=10)
        self.assertEqual(connection.calls, [("stream", 'select * from t where "a" = $1', [1])])


class TableStreamTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.conn, self.db = seeded_sqlite()

    async def asyncTearDown(self) -> None:
        self.conn.close()

    async def test_table_streams_filtered_rows(self) -> None:
        table = Table("test", self.db, ["id", "integerCol"])
        sink = io.StringIO()

        count = await table.stream_json(sink, {"integerCol": 1}, batch_size=1)

        self.assertEqual(count, 2)
        self.assertEqual(
            sorted(json.loads(sink.getvalue()), key=lambda row: row["id"]),
            [{"id": 1, "integerCol": 1}, {"id": 2, "integerCol": 1}],
        )

    async def test_table_stream_applies_query_converter(self) -> None:
        table = Table("test", self.db, query_converter=lambda f: {"stringCol": f["name"]})
        sink = io.StringIO()

        self.assertEqual(await table.stream_json(sink, {"name": "c"}), 1)
        self.assertEqual(json.loads(sink.getvalue())[0]["id"], 3)

    async def test_table_stream_without_transform_skips_converters(self) -> None:
        def query_converter(filter):  # noqa: ANN001,ANN202
            raise AssertionError("query converter must not run")

        def outbound(row, operation):  # noqa: ANN001,ANN202
            raise AssertionError("rows are streamed as stored")

        table = Table(
            "test", self.db, ["id"], outbound=outbound, query_converter=query_converter
        )
        sink = io.StringIO()

        self.assertEqual(await table.stream_json(sink, {"stringCol": "c"}, False), 1)
        self.assertEqual(json.loads(sink.getvalue()), [{"id": 3}])

    async def test_table_stream_writes_raw_rows_with_outbound_converter(self) -> None:
        table = Table("test", self.db, ["id"], outbound=lambda row, op: {"wrapped": row})
        sink = io.StringIO()

        await table.stream_json(sink, {"stringCol": "a"})

        self.assertEqual(json.loads(sink.getvalue()), [{"id": 1}])


if __name__ == "__main__":
    unittest.main()
