"""Body serialization for packet payloads.

Provides the ``BodySerializer`` protocol with ``JsonSerializer`` (the format
game servers speak) and ``MsgpackSerializer``, plus the strict mapping between
payload dataclasses and their wire objects.
"""

from __future__ import annotations

import dataclasses
import json
import re
import types
from collections.abc import Mapping
from typing import Any, Literal, Protocol, TypeAlias, TypeVar, Union, get_args, get_origin, get_type_hints, runtime_checkable

import msgpack

from gamelink.errors import PayloadDecodeError

SerializerKind: TypeAlias = Literal["json", "msgpack"]

T = TypeVar("T")

_CAMEL_RE = re.compile(r"_([a-z0-9])")


@runtime_checkable
class BodySerializer(Protocol):
    def serialize(self, obj: Any) -> bytes: ...
    def deserialize(self, data: bytes) -> Any: ...


class JsonSerializer:
    """Compact UTF-8 JSON bodies.

    Examples
    --------
    >>> JsonSerializer().serialize({"id": "a"})
    b'{"id":"a"}'
    """

    def serialize(self, obj: Any) -> bytes:
        return json.dumps(obj, separators=(",", ":")).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            raise PayloadDecodeError(f"Invalid JSON body: {e}") from e


class MsgpackSerializer:
    """Binary msgpack bodies."""

    def serialize(self, obj: Any) -> bytes:
        return msgpack.packb(obj, use_bin_type=True)

    def deserialize(self, data: bytes) -> Any:
        try:
            return msgpack.unpackb(data, raw=False)
        except (ValueError, TypeError) as e:
            raise PayloadDecodeError(f"Invalid msgpack body: {e}") from e


def serializer_for(kind: SerializerKind) -> BodySerializer:
    match kind:
        case "json":
            return JsonSerializer()
        case "msgpack":
            return MsgpackSerializer()
        case _:
            raise ValueError(f"Unknown serializer: {kind!r}")


# =============================================================================
# Dataclass <-> wire object
# =============================================================================


def wire_name(f: dataclasses.Field[Any]) -> str:
    """Wire key of a payload field: explicit ``wire`` metadata or camelCase."""
    explicit = f.metadata.get("wire")
    if explicit is not None:
        return explicit
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), f.name)


def to_wire(value: Any) -> Any:
    """Convert a payload into plain objects a body serializer understands."""
    match value:
        case None | bool() | int() | float() | str():
            return value
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {
                wire_name(f): to_wire(getattr(value, f.name))
                for f in dataclasses.fields(value)
            }
        case Mapping():
            return {str(k): to_wire(v) for k, v in value.items()}
        case list() | tuple():
            return [to_wire(item) for item in value]
        case _:
            raise TypeError(f"Cannot serialize {type(value).__name__} payload value")


def from_wire(shape: type[T], value: Any) -> T:
    """Build a *shape* instance from a wire object, checking every field.

    Raises:
        PayloadDecodeError: If *value* is not an object, a required field is
            missing, or a field has the wrong type.
    """
    if not isinstance(value, dict):
        raise PayloadDecodeError(
            f"{shape.__name__}: expected an object, got {type(value).__name__}"
        )
    hints = get_type_hints(shape)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(shape):  # type: ignore[arg-type]
        key = wire_name(f)
        if key not in value:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise PayloadDecodeError(f"{shape.__name__}: missing field {key!r}")
            continue
        kwargs[f.name] = _check(value[key], hints[f.name], f"{shape.__name__}.{key}")
    return shape(**kwargs)


def _check(value: Any, tp: Any, where: str) -> Any:
    if tp is Any:
        return value

    origin = get_origin(tp)

    if origin is Union or origin is types.UnionType:
        for arg in get_args(tp):
            if arg is type(None):
                if value is None:
                    return None
                continue
            try:
                return _check(value, arg, where)
            except PayloadDecodeError:
                continue
        raise PayloadDecodeError(f"{where}: unexpected {type(value).__name__}")

    if origin is list:
        if not isinstance(value, list):
            raise PayloadDecodeError(f"{where}: expected list, got {type(value).__name__}")
        (item_type,) = get_args(tp) or (Any,)
        return [_check(item, item_type, f"{where}[{i}]") for i, item in enumerate(value)]

    if origin is dict or tp is dict:
        if not isinstance(value, dict):
            raise PayloadDecodeError(f"{where}: expected object, got {type(value).__name__}")
        return value

    if tp is bool:
        if isinstance(value, bool):
            return value
    elif tp is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif tp is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif tp is str:
        if isinstance(value, str):
            return value
    else:
        raise PayloadDecodeError(f"{where}: unsupported field type {tp!r}")

    raise PayloadDecodeError(
        f"{where}: expected {tp.__name__}, got {type(value).__name__}"
    )
