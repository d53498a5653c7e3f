"""Table factory: the extension point for specialized table handles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .contracts import ConnectionPort
from .converters import InboundConverter, OutboundConverter, QueryConverter
from .query_builder import Projection
from .table import Table


@dataclass(frozen=True)
class TableOptions:
    """Per-table configuration applied when a handle is created."""

    projection: Projection = None
    inbound: Optional[InboundConverter] = None
    outbound: Optional[OutboundConverter] = None
    query_converter: Optional[QueryConverter] = None
    created_at_field: Optional[str] = "createdAt"
    id_field: str = "id"


class TableFactory:
    """Create `Table` handles, optionally configured per table name.

    Subclasses may override `create()` to return other handle types.
    """

    def __init__(self, options: Optional[Mapping[str, TableOptions]] = None):
        self.options: dict[str, TableOptions] = dict(options or {})

    def create(self, table_name: str, connection: ConnectionPort) -> Table:
        """Create a handle for `table_name` bound to `connection`."""

        opts = self.options.get(table_name)
        if opts is None:
            return Table(table_name, connection)
        return Table(
            table_name,
            connection,
            opts.projection,
            inbound=opts.inbound,
            outbound=opts.outbound,
            query_converter=opts.query_converter,
            created_at_field=opts.created_at_field,
            id_field=opts.id_field,
        )

    def register(self, table_name: str, options: TableOptions) -> None:
        """Configure handles created for `table_name` from now on."""

        self.options[table_name] = options
