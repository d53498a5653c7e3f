"""Shared core types used by the codec, statement builder, and table handles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

Payload = Mapping[str, Any]
Filter = Optional[Mapping[str, Any]]
Identifier = Union[Mapping[str, Any], Any]

PositionalParams = List[Any]
QueryParams = Optional[PositionalParams]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]
MaybeRow = Optional[RowMapping]

# Literal PostgreSQL accepts for open-ended timestamp columns.
INFINITY = "infinity"


class OperationKind(str, Enum):
    """Call site tag handed to converters."""

    INSERT = "insert"
    UPDATE = "update"
    QUERY = "query"
    DELETE = "delete"


@dataclass(frozen=True)
class Page:
    """One window of a result set, numbered from 1."""

    size: int
    number: int

    @property
    def offset(self) -> int:
        return self.size * (self.number - 1)

    @property
    def limit(self) -> int:
        return self.size

    @classmethod
    def coerce(cls, page: PageInput) -> Optional[Page]:
        """Normalize a `Page`, a `{size, number}` mapping, or `None`.

        Returns `None` when pagination does not apply, i.e. when size or
        number is missing or zero.
        """

        if page is None:
            return None
        if isinstance(page, Page):
            size, number = page.size, page.number
        elif isinstance(page, Mapping):
            size = page.get("size")
            number = page.get("number", page.get("no"))
        else:
            raise TypeError(
                f"page must be a Page or a mapping, got {type(page).__name__}."
            )
        if not size or not number:
            return None
        return cls(size=int(size), number=int(number))


PageInput = Union[Page, Mapping[str, Any], None]

