"""Payload codec: turn an ordered field mapping into columns, binds, and values.

Every writer and the filter compiler go through `encode_payload`, so the
coercion rules below apply uniformly to inserts, updates, and filters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Tuple

from .types import INFINITY, Payload


@dataclass(frozen=True)
class EncodedPayload:
    """Aligned column names, bind placeholders, and coerced values."""

    columns: Tuple[str, ...]
    placeholders: Tuple[str, ...]
    values: Tuple[Any, ...]

    def __len__(self) -> int:
        return len(self.columns)


def quote_identifier(name: str) -> str:
    """Quote SQL identifier with double quotes."""

    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def coerce_value(value: Any) -> Any:
    """Apply write-side coercion to one payload value.

    - empty string becomes `None`
    - positive float infinity becomes the `'infinity'` timestamp literal
    """

    if isinstance(value, str):
        return None if value == "" else value
    if isinstance(value, float) and math.isinf(value) and value > 0:
        return INFINITY
    return value


def encode_payload(payload: Payload, *, start: int = 1) -> EncodedPayload:
    """Encode a payload preserving its iteration order.

    Args:
        payload: Ordered field name to value mapping.
        start: Number of the first bind placeholder.

    Returns:
        Encoded payload. Empty input yields empty sequences.
    """

    columns = []
    placeholders = []
    values = []
    for index, (name, value) in enumerate(payload.items(), start=start):
        columns.append(quote_identifier(name))
        placeholders.append(f"${index}")
        values.append(coerce_value(value))
    return EncodedPayload(tuple(columns), tuple(placeholders), tuple(values))
