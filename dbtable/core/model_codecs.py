"""Dataclass model converters for table handles.

`DataclassConverter` maps returned rows onto a dataclass and serializes enum
and JSON payload values on the way in. Field handling follows annotations:
`Enum` subclasses use the enum codec, `dict`/`list` (and their generic
aliases) use the JSON codec. `field(metadata={"codec": "json"})` forces the
JSON codec on any other field.
"""

from __future__ import annotations

import json
import types
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Generic, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .types import OperationKind, Payload, RowMapping

T = TypeVar("T")

_JSON = "json"


class DataclassConverter(Generic[T]):
    """Inbound/outbound converter pair bound to one dataclass model."""

    def __init__(self, model: Type[T]):
        if not (isinstance(model, type) and is_dataclass(model)):
            raise TypeError(f"{getattr(model, '__name__', model)!r} must be a dataclass.")
        self.model = model
        hints = get_type_hints(model)
        self._init_fields = {f.name for f in fields(model) if f.init}
        self._names = [f.name for f in fields(model)]
        # field name -> Enum subclass or "json"; plain fields are absent
        self._codecs: Dict[str, Any] = {}
        for f in fields(model):
            codec = _codec_for(hints.get(f.name, f.type), f.metadata.get("codec"))
            if codec is not None:
                self._codecs[f.name] = codec

    def inbound(self, payload: Payload, operation: OperationKind) -> Payload:
        """Serialize enum and JSON values of known fields."""

        return {name: self._encode(name, value) for name, value in payload.items()}

    def outbound(self, row: RowMapping, operation: OperationKind) -> T:
        """Build a model instance from a row, ignoring unknown columns."""

        kwargs = {
            name: self._decode(name, value)
            for name, value in row.items()
            if name in self._init_fields
        }
        return self.model(**kwargs)

    def to_payload(self, obj: T) -> Dict[str, Any]:
        """Return the field values of a model instance as a plain payload."""

        return {name: getattr(obj, name) for name in self._names}

    def _encode(self, name: str, value: Any) -> Any:
        codec = self._codecs.get(name)
        if value is None or codec is None:
            return value
        if codec == _JSON:
            return value if isinstance(value, str) else json.dumps(value)
        return _to_member(codec, value, name).value

    def _decode(self, name: str, value: Any) -> Any:
        codec = self._codecs.get(name)
        if value is None or codec is None:
            return value
        if codec == _JSON:
            if not isinstance(value, str):
                return value
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Cannot decode JSON for field {name!r}: {value!r}.") from exc
        return _to_member(codec, value, name)


def _codec_for(annotation: Any, declared: Any) -> Any:
    if declared is not None:
        if declared != _JSON:
            raise ValueError(f"Unsupported codec {declared!r}; only 'json' may be declared.")
        return _JSON
    base = _unwrap_optional(annotation)
    if isinstance(base, type) and issubclass(base, Enum):
        return base
    if base in (dict, list) or get_origin(base) in (dict, list):
        return _JSON
    return None


def _to_member(enum_type: Type[Enum], value: Any, name: str) -> Enum:
    """Accept a member, a member value, or a member name."""

    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        if isinstance(value, str) and value in enum_type.__members__:
            return enum_type[value]
        raise ValueError(
            f"Invalid value {value!r} for enum {enum_type.__name__} on field {name!r}."
        ) from None


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if len(args) == 1 else annotation
