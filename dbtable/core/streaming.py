"""Stream large query results into a sink as a JSON array."""

from __future__ import annotations

import json
import logging
from typing import Any

from ._async_utils import _maybe_await
from .contracts import ConnectionPort
from .types import QueryParams

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


async def stream_json(
    connection: ConnectionPort,
    query: str,
    parameters: QueryParams,
    sink: Any,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Serialize each row of `query` into `sink` as it arrives.

    The output is one JSON array: `[`, rows separated by `,`, then `]`. Values
    the `json` module cannot encode (datetimes, decimals, UUIDs) are written
    with `str()`. `sink.write` may be sync or async; an async `write` is
    awaited before the next row is pulled.

    Returns:
        Number of rows written.
    """

    count = 0
    await _maybe_await(sink.write("["))
    async for row in connection.stream(query, parameters, batch_size=batch_size):
        chunk = json.dumps(dict(row), default=str)
        if count:
            chunk = "," + chunk
        await _maybe_await(sink.write(chunk))
        count += 1
    await _maybe_await(sink.write("]"))
    logger.debug("streamed %d row(s) as JSON", count)
    return count
