"""Converter hooks attached to table handles.

Hooks are plain callables; the protocols below document their shape. A
specialized table is built by passing converters to `Table`, never by
subclassing it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

from .types import OperationKind, Payload, RowMapping


class InboundConverter(Protocol):
    """Rewrite a payload before it is encoded for insert or update."""

    def __call__(self, payload: Payload, operation: OperationKind) -> Payload: ...


class OutboundConverter(Protocol):
    """Turn a returned row into the caller's domain object."""

    def __call__(self, row: RowMapping, operation: OperationKind) -> Any: ...


class QueryConverter(Protocol):
    """Rewrite a filter before it is compiled."""

    def __call__(self, filter: Payload) -> Payload: ...


def identity_inbound(payload: Payload, operation: OperationKind) -> Payload:
    return payload


def identity_outbound(row: RowMapping, operation: OperationKind) -> Any:
    return row


def identity_query(filter: Payload) -> Payload:
    return filter


def compose_inbound(*converters: Optional[InboundConverter]) -> InboundConverter:
    """Chain inbound converters left to right, skipping `None` entries."""

    chain = [c for c in converters if c is not None]

    def _composed(payload: Payload, operation: OperationKind) -> Payload:
        for converter in chain:
            payload = converter(payload, operation)
        return payload

    return _composed


def compose_outbound(*converters: Optional[OutboundConverter]) -> OutboundConverter:
    """Chain outbound converters left to right, skipping `None` entries."""

    chain = [c for c in converters if c is not None]

    def _composed(row: Any, operation: OperationKind) -> Any:
        for converter in chain:
            row = converter(row, operation)
        return row

    return _composed


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ModifiedAtStamp:
    """Inbound converter that stamps a modification time on every update."""

    def __init__(
        self,
        field: str = "modifiedAt",
        *,
        clock: Callable[[], Any] = _utc_now,
    ):
        self.field = field
        self.clock = clock

    def __call__(self, payload: Payload, operation: OperationKind) -> Payload:
        if operation is not OperationKind.UPDATE:
            return payload
        stamped: Dict[str, Any] = dict(payload)
        stamped[self.field] = self.clock()
        return stamped

    def __repr__(self) -> str:
        return f"ModifiedAtStamp(field={self.field!r})"
