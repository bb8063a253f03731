"""Derive shapes from Python type hints.

Builtins map to their natural kinds (int is i64, float is f64). Narrower
widths are declared with `Annotated[int, "u8"]` or, on dataclass fields,
with codec_field():

    @dataclass
    class Reading:
        sensor: int = codec_field(type="u8")
        celsius: float = codec_field(type="f32")
        label: str | None = None

Dataclasses become records. A `codec_kind` class variable selects another
layout, mirroring how a type declares itself in the schema language:

    @dataclass
    class Meters:
        codec_kind: ClassVar[str] = "newtype"
        value: float

Enum subclasses become unions of unit variants and unions of dataclasses
become tagged unions, both indexed in declaration order. Recursive types are
not supported.
"""

import dataclasses
import functools
import types
import typing
from enum import Enum
from typing import Annotated, Any, get_args, get_origin, get_type_hints

from .shapes import (
    BOOL,
    BYTES,
    F64,
    I64,
    PRIMITIVES,
    STR,
    UNIT,
    Custom,
    Field,
    Map,
    Newtype,
    Option,
    Record,
    Seq,
    Shape,
    Tuple,
    TupleStruct,
    Union,
    UnitStruct,
    Variant,
    VariantKind,
)

CODEC_KINDS = ("struct", "tuple", "newtype", "unit")

_BUILTINS: dict[Any, Shape] = {
    bool: BOOL,
    int: I64,
    float: F64,
    str: STR,
    bytes: BYTES,
    type(None): UNIT,
}


@dataclasses.dataclass(frozen=True)
class CodecFieldInfo:
    """Metadata for a dataclass field with an explicit shape."""

    shape: Shape


# Sentinel for missing default
_MISSING: Any = object()


def codec_field(
    type: str | Shape,
    *,
    default: Any = _MISSING,
    default_factory: Any = _MISSING,
) -> Any:
    """Define a dataclass field with an explicit shape.

    Args:
        type: A primitive name (e.g. "u8", "f32", "string") or a Shape.
        default: Default value for the field.
        default_factory: Factory function for default value.

    Returns:
        A dataclass field with codec metadata attached.
    """
    metadata = {"bytebuffer": CodecFieldInfo(shape_of(type))}

    if default is not _MISSING:
        return dataclasses.field(default=default, metadata=metadata)
    if default_factory is not _MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(metadata=metadata)


def _is_traversable(cls: type) -> bool:
    return callable(getattr(cls, "serialize", None)) and callable(getattr(cls, "deserialize", None))


def _codec_kind(cls: type) -> str:
    kind = getattr(cls, "codec_kind", "struct")
    if kind not in CODEC_KINDS:
        raise TypeError(f"{cls.__name__}: unknown codec_kind {kind!r}")
    return kind


def _dataclass_fields(cls: type) -> tuple[Field, ...]:
    hints = get_type_hints(cls, include_extras=True)
    result = []
    for f in dataclasses.fields(cls):
        info = f.metadata.get("bytebuffer")
        shape = info.shape if info is not None else shape_of(hints[f.name])
        result.append(Field(f.name, shape))
    return tuple(result)


@functools.cache
def _dataclass_shape(cls: type) -> Shape:
    kind = _codec_kind(cls)
    fields = _dataclass_fields(cls)
    name = cls.__name__

    if kind == "unit" or not fields:
        return UnitStruct(name, cls)
    if kind == "newtype":
        if len(fields) != 1:
            raise TypeError(f"{name}: a newtype must have exactly one field")
        return Newtype(name, fields[0].shape, cls, fields[0].name)
    if kind == "tuple":
        return TupleStruct(name, fields, cls)
    return Record(name, fields, cls)


@functools.cache
def _enum_shape(cls: type[Enum]) -> Union:
    return Union(cls.__name__, tuple(Variant(m.name, member=m) for m in cls))


def _variant(cls: Any) -> Variant:
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"union members must be dataclasses, got {cls!r}")

    kind = _codec_kind(cls)
    fields = _dataclass_fields(cls)
    if kind == "unit" or not fields:
        return Variant(cls.__name__, VariantKind.UNIT, (), cls)
    if kind == "newtype":
        if len(fields) != 1:
            raise TypeError(f"{cls.__name__}: a newtype variant must have exactly one field")
        return Variant(cls.__name__, VariantKind.NEWTYPE, fields, cls)
    if kind == "tuple":
        return Variant(cls.__name__, VariantKind.TUPLE, fields, cls)
    return Variant(cls.__name__, VariantKind.STRUCT, fields, cls)


def _union_shape(members: tuple[Any, ...]) -> Shape:
    present = tuple(m for m in members if m is not type(None))
    if len(present) < len(members):
        inner = present[0] if len(present) == 1 else typing.Union[present]
        return Option(shape_of(inner))

    variants = tuple(_variant(m) for m in present)
    return Union(" | ".join(v.name for v in variants), variants)


def shape_of(hint: Any) -> Shape:
    """Derive the shape described by a type hint, shape or primitive name."""
    if isinstance(hint, Shape):
        return hint
    if isinstance(hint, str):
        if hint not in PRIMITIVES:
            raise TypeError(f"unknown primitive type {hint!r}")
        return PRIMITIVES[hint]
    if hint is None:
        return UNIT

    origin = get_origin(hint)
    args = get_args(hint)

    if origin is Annotated:
        for meta in args[1:]:
            if isinstance(meta, (Shape, str)):
                return shape_of(meta)
        return shape_of(args[0])
    if origin in (typing.Union, types.UnionType):
        return _union_shape(args)
    if origin is list:
        return Seq(shape_of(args[0]) if args else _fail(hint))
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return Seq(shape_of(args[0]), tuple)
        if args == ((),):
            return Tuple(())
        return Tuple(tuple(shape_of(a) for a in args))
    if origin is dict:
        return Map(shape_of(args[0]), shape_of(args[1]))
    if origin is not None:
        return _fail(hint)

    if hint in _BUILTINS:
        return _BUILTINS[hint]

    if isinstance(hint, type):
        if _is_traversable(hint):
            return Custom(hint)
        if issubclass(hint, Enum):
            return _enum_shape(hint)
        if dataclasses.is_dataclass(hint):
            return _dataclass_shape(hint)

    return _fail(hint)


def _fail(hint: Any) -> Shape:
    raise TypeError(f"cannot derive a shape for {hint!r}")
