"""Core port contracts used by adapters and table handles."""

from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Tuple, TypeVar

from .types import MaybeRow, QueryParams, RowMapping, Rows

R = TypeVar("R")


class DialectPort(Protocol):
    """Translation from `$n` statement text to a driver's parameter style."""

    name: str
    paramstyle: str

    def translate(self, sql: str, params: QueryParams = None) -> Tuple[str, Any]: ...


class ConnectionPort(Protocol):
    """Execution primitive consumed by `Table`, `Context`, and streaming.

    Statement text always uses positional `$1..$n` placeholders.
    """

    async def one(self, sql: str, params: QueryParams = None) -> RowMapping: ...

    async def one_or_none(self, sql: str, params: QueryParams = None) -> MaybeRow: ...

    async def many_or_none(self, sql: str, params: QueryParams = None) -> Rows: ...

    async def none(self, sql: str, params: QueryParams = None) -> None: ...

    async def tx(self, fn: Callable[[ConnectionPort], Awaitable[R]]) -> R: ...

    def stream(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        batch_size: int = ...,
    ) -> AsyncIterator[RowMapping]: ...
