"""Context: named table handles over one connection, with transaction scoping."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Sequence, Tuple, TypeVar, Union

from .contracts import ConnectionPort
from .factory import TableFactory
from .table import Table

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class TableDescriptor:
    """One managed table and the attribute name it is exposed under."""

    table_name: str
    ref_name: str

    @classmethod
    def coerce(cls, raw: TableDescriptorInput) -> TableDescriptor:
        if isinstance(raw, TableDescriptor):
            return raw
        if not isinstance(raw, Mapping):
            raise TypeError(
                f"Table descriptor must be TableDescriptor or mapping, got {type(raw).__name__}."
            )
        table_name = raw.get("table_name", raw.get("tableName"))
        ref_name = raw.get("ref_name", raw.get("refName"))
        if not isinstance(table_name, str) or not table_name:
            raise ValueError(f"Table descriptor {dict(raw)!r} requires a non-empty table_name.")
        if not isinstance(ref_name, str) or not ref_name.isidentifier():
            raise ValueError(f"Table descriptor {dict(raw)!r} requires an identifier ref_name.")
        return cls(table_name=table_name, ref_name=ref_name)


TableDescriptorInput = Union[TableDescriptor, Mapping[str, Any]]


class Context:
    """Holds a connection and one table handle per descriptor.

    Handles are reachable as attributes (`ctx.users`) and by key
    (`ctx["users"]`).
    """

    def __init__(
        self,
        connection: ConnectionPort,
        tables: Sequence[TableDescriptorInput],
        factory: Optional[TableFactory] = None,
    ):
        self.connection = connection
        self.descriptors: Tuple[TableDescriptor, ...] = tuple(
            TableDescriptor.coerce(raw) for raw in tables
        )
        self.factory = factory or TableFactory()
        self._tables: Dict[str, Table] = {}

        for descriptor in self.descriptors:
            ref = descriptor.ref_name
            if ref in self._tables:
                raise ValueError(f"Duplicate ref_name {ref!r} in table descriptors.")
            if hasattr(type(self), ref) or ref in self.__dict__:
                raise ValueError(f"ref_name {ref!r} collides with a Context attribute.")
            table = self.factory.create(descriptor.table_name, connection)
            self._tables[ref] = table
            setattr(self, ref, table)

    def bind(self, connection: ConnectionPort) -> Context:
        """Return a new Context with the same tables bound to `connection`."""

        return type(self)(connection, self.descriptors, self.factory)

    async def in_transaction(self, callback: Callable[[Context], Awaitable[R]]) -> R:
        """Run `callback` with a Context bound to a new transaction.

        Commit and rollback are left to the connection's `tx()`: the
        transaction commits when `callback` returns and rolls back when it
        raises. The Context passed to `callback` must not outlive it.
        """

        async def _run(transaction: ConnectionPort) -> R:
            logger.debug("context bound to transaction %r", transaction)
            return await callback(self.bind(transaction))

        return await self.connection.tx(_run)

    def __getitem__(self, ref_name: str) -> Table:
        return self._tables[ref_name]

    def __contains__(self, ref_name: object) -> bool:
        return ref_name in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)


def bind(
    connection: ConnectionPort,
    tables: Sequence[TableDescriptorInput],
    factory: Optional[TableFactory] = None,
) -> Context:
    """Build a Context for `connection`."""

    return Context(connection, tables, factory)
