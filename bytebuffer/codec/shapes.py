"""Shape descriptors driving both directions of the traversal protocol.

A shape knows how to hand a Python value to a Serializer, one callback per
component, and how to request the same shape back from a Deserializer. Shapes
are immutable and can be shared freely.

Composite shapes may carry the class that values are built from. Without
one, plain Python values are used: dict for records, tuple for tuple structs,
the wrapped value for newtypes, None for unit structs and Tagged for unions.
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sized
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any

from . import layout
from .errors import ShapeMismatchError, UnsupportedRequestError
from .traversal import END, Deserializer, EnumAccess, MapAccess, SeqAccess, Serializer, Visitor

__all__ = [
    "BOOL",
    "BYTES",
    "CHAR",
    "F32",
    "F64",
    "I8",
    "I16",
    "I32",
    "I64",
    "PRIMITIVES",
    "STR",
    "U8",
    "U16",
    "U32",
    "U64",
    "UNIT",
    "Bound",
    "Custom",
    "Field",
    "Map",
    "Newtype",
    "Option",
    "Primitive",
    "Record",
    "Seq",
    "Shape",
    "Tagged",
    "Tuple",
    "TupleStruct",
    "Union",
    "Unit",
    "UnitStruct",
    "Variant",
    "VariantKind",
]


class Shape(ABC):
    """Base class for shape descriptors."""

    __slots__ = ()

    @abstractmethod
    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize(self, deserializer: Deserializer) -> Any:
        raise NotImplementedError

    def bind(self, value: Any) -> "Bound":
        """Pair a value with this shape so it can describe itself."""
        return Bound(self, value)


@dataclass(frozen=True, slots=True)
class Bound:
    """A value paired with its shape, usable wherever a Serialize is expected."""

    shape: Shape
    value: Any

    def serialize(self, serializer: Serializer) -> Any:
        return self.shape.serialize_value(self.value, serializer)


@dataclass(frozen=True, slots=True)
class Tagged:
    """Value of a union variant when the union carries no classes."""

    variant: str
    value: Any = None


class _ValueVisitor(Visitor):
    """Accepts primitive kinds and returns them as plain Python values."""

    def __init__(self, expecting: str) -> None:
        self.expecting = expecting

    def visit_bool(self, v: bool) -> bool:
        return v

    def visit_i64(self, v: int) -> int:
        return v

    def visit_u64(self, v: int) -> int:
        return v

    def visit_f64(self, v: float) -> float:
        return v

    def visit_char(self, v: str) -> str:
        return v

    def visit_str(self, v: str) -> str:
        return v

    def visit_bytes(self, v: bytes) -> bytes:
        return bytes(v)

    def visit_unit(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Primitive(Shape):
    """A fixed-width scalar, a string or a byte blob."""

    kind: str

    def _check(self, value: Any, serializer: Serializer) -> None:
        kind = self.kind
        if kind in layout.INT_RANGES:
            if isinstance(value, bool) or not isinstance(value, int):
                raise serializer.custom(f"{kind} requires an int, got {type(value).__name__}")
            low, high = layout.INT_RANGES[kind]
            if not low <= value <= high:
                raise serializer.custom(f"{value} is out of range for {kind}")
        elif kind in ("f32", "f64"):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise serializer.custom(f"{kind} requires a float, got {type(value).__name__}")
            try:
                number = float(value)
            except OverflowError:
                raise serializer.custom(f"{value} is out of range for {kind}") from None
            if kind == "f32" and math.isfinite(number) and abs(number) > layout.FLOAT32_MAX:
                raise serializer.custom(f"{value} is out of range for f32")
        elif kind == "bool":
            if not isinstance(value, bool):
                raise serializer.custom(f"bool requires a bool, got {type(value).__name__}")
        elif kind == "char":
            if not isinstance(value, str) or len(value) != 1:
                raise serializer.custom(f"char requires a single character, got {value!r}")
        elif kind == "str":
            if not isinstance(value, str):
                raise serializer.custom(f"str requires a str, got {type(value).__name__}")
        elif kind == "bytes":
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise serializer.custom(f"bytes requires a bytes-like, got {type(value).__name__}")

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        self._check(value, serializer)
        return getattr(serializer, f"serialize_{self.kind}")(value)

    def deserialize(self, deserializer: Deserializer) -> Any:
        visitor = _ValueVisitor(f"a value of kind {self.kind}")
        return getattr(deserializer, f"deserialize_{self.kind}")(visitor)


@dataclass(frozen=True, slots=True)
class Unit(Shape):
    """The empty value, encoded as zero bytes."""

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        if value is not None:
            raise serializer.custom(f"unit requires None, got {value!r}")
        return serializer.serialize_unit()

    def deserialize(self, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_unit(_ValueVisitor("unit"))


BOOL = Primitive("bool")
I8 = Primitive("i8")
I16 = Primitive("i16")
I32 = Primitive("i32")
I64 = Primitive("i64")
U8 = Primitive("u8")
U16 = Primitive("u16")
U32 = Primitive("u32")
U64 = Primitive("u64")
F32 = Primitive("f32")
F64 = Primitive("f64")
CHAR = Primitive("char")
STR = Primitive("str")
BYTES = Primitive("bytes")
UNIT = Unit()

PRIMITIVES: dict[str, Shape] = {
    "bool": BOOL,
    "i8": I8,
    "i16": I16,
    "i32": I32,
    "i64": I64,
    "u8": U8,
    "u16": U16,
    "u32": U32,
    "u64": U64,
    "f32": F32,
    "f64": F64,
    "char": CHAR,
    "str": STR,
    "string": STR,
    "bytes": BYTES,
    "unit": UNIT,
}


class _OptionVisitor(Visitor):
    expecting = "an optional value"

    def __init__(self, inner: Shape) -> None:
        self._inner = inner

    def visit_none(self) -> None:
        return None

    def visit_some(self, deserializer: Deserializer) -> Any:
        return self._inner.deserialize(deserializer)


@dataclass(frozen=True, slots=True)
class Option(Shape):
    """A value that may be absent (None)."""

    inner: Shape

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        if value is None:
            return serializer.serialize_none()
        return serializer.serialize_some(self.inner.bind(value))

    def deserialize(self, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_option(_OptionVisitor(self.inner))


def _read_elements(access: SeqAccess, shapes: Iterable[Shape]) -> list[Any]:
    values = []
    for shape in shapes:
        value = access.next_element(shape)
        if value is END:
            raise ShapeMismatchError(f"expected more elements after {len(values)}")
        values.append(value)
    return values


class _SeqVisitor(Visitor):
    expecting = "a sequence"

    def __init__(self, element: Shape, builder: Callable[[Iterable[Any]], Any]) -> None:
        self._element = element
        self._builder = builder

    def visit_seq(self, access: SeqAccess) -> Any:
        items = []
        while (item := access.next_element(self._element)) is not END:
            items.append(item)
        return self._builder(items)


@dataclass(frozen=True, slots=True)
class Seq(Shape):
    """A variable-length homogeneous sequence, prefixed by its length."""

    element: Shape
    builder: Callable[[Iterable[Any]], Any] = list

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        if isinstance(value, (str, bytes, Mapping)):
            raise serializer.custom(f"seq requires a sequence, got {type(value).__name__}")
        compound = serializer.serialize_seq(len(value) if isinstance(value, Sized) else None)
        for item in value:
            compound.serialize_element(self.element.bind(item))
        return compound.end()

    def deserialize(self, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_seq(_SeqVisitor(self.element, self.builder))


class _MapVisitor(Visitor):
    expecting = "a map"

    def __init__(self, key: Shape, value: Shape) -> None:
        self._key = key
        self._value = value

    def visit_map(self, access: MapAccess) -> dict[Any, Any]:
        result = {}
        while (key := access.next_key(self._key)) is not END:
            value = access.next_value(self._value)
            try:
                result[key] = value
            except TypeError:
                raise UnsupportedRequestError(
                    f"map key {key!r} cannot be used as a dict key"
                ) from None
        return result


@dataclass(frozen=True, slots=True)
class Map(Shape):
    """A variable-length mapping, prefixed by its entry count."""

    key: Shape
    value: Shape

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        if not isinstance(value, Mapping):
            raise serializer.custom(f"map requires a mapping, got {type(value).__name__}")
        compound = serializer.serialize_map(len(value))
        for k, v in value.items():
            compound.serialize_entry(self.key.bind(k), self.value.bind(v))
        return compound.end()

    def deserialize(self, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_map(_MapVisitor(self.key, self.value))


class _ElementsVisitor(Visitor):
    """Reads a fixed list of shapes and hands the values to a builder."""

    def __init__(
        self, shapes: tuple[Shape, ...], builder: Callable[[list[Any]], Any], expecting: str
    ) -> None:
        self._shapes = shapes
        self._builder = builder
        self.expecting = expecting

    def visit_seq(self, access: SeqAccess) -> Any:
        return self._builder(_read_elements(access, self._shapes))


def _check_arity(value: Any, length: int, what: str, serializer: Serializer) -> None:
    if not isinstance(value, (tuple, list)) or len(value) != length:
        raise serializer.custom(f"{what} requires a sequence of {length} elements, got {value!r}")


@dataclass(frozen=True, slots=True)
class Tuple(Shape):
    """A fixed-arity heterogeneous tuple; arity is not encoded."""

    elements: tuple[Shape, ...]

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        _check_arity(value, len(self.elements), "tuple", serializer)
        compound = serializer.serialize_tuple(len(self.elements))
        for shape, item in zip(self.elements, value):
            compound.serialize_element(shape.bind(item))
        return compound.end()

    def deserialize(self, deserializer: Deserializer) -> Any:
        visitor = _ElementsVisitor(self.elements, tuple, f"a tuple of {len(self.elements)}")
        return deserializer.deserialize_tuple(len(self.elements), visitor)


@dataclass(frozen=True, slots=True)
class Field:
    """A named member of a record, tuple struct or variant."""

    name: str
    shape: Shape


def _field_values(fields: tuple[Field, ...], value: Any, cls: Any, serializer: Serializer) -> list[Any]:
    """Pull field values out of a class instance, a dict or a sequence."""
    if cls is not None:
        if not isinstance(value, cls):
            raise serializer.custom(f"expected {cls.__name__}, got {type(value).__name__}")
        return [getattr(value, f.name) for f in fields]
    if isinstance(value, Mapping):
        missing = [f.name for f in fields if f.name not in value]
        if missing:
            raise serializer.custom(f"missing fields: {', '.join(missing)}")
        return [value[f.name] for f in fields]
    _check_arity(value, len(fields), "fields", serializer)
    return list(value)


@dataclass(frozen=True, slots=True)
class UnitStruct(Shape):
    """A named type without fields, encoded as zero bytes."""

    name: str
    cls: Any = None

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        if self.cls is not None and not isinstance(value, self.cls):
            raise serializer.custom(f"expected {self.name}, got {type(value).__name__}")
        return serializer.serialize_unit_struct(self.name)

    def deserialize(self, deserializer: Deserializer) -> Any:
        deserializer.deserialize_unit_struct(self.name, _ValueVisitor(self.name))
        return self.cls() if self.cls is not None else None


class _NewtypeVisitor(Visitor):
    def __init__(self, shape: "Newtype") -> None:
        self._shape = shape
        self.expecting = f"newtype struct {shape.name}"

    def visit_newtype_struct(self, deserializer: Deserializer) -> Any:
        value = self._shape.inner.deserialize(deserializer)
        return self._shape.cls(value) if self._shape.cls is not None else value


@dataclass(frozen=True, slots=True)
class Newtype(Shape):
    """A named wrapper encoded exactly as the value it wraps."""

    name: str
    inner: Shape
    cls: Any = None
    attr: str = "value"

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        if self.cls is not None:
            if not isinstance(value, self.cls):
                raise serializer.custom(f"expected {self.name}, got {type(value).__name__}")
            value = getattr(value, self.attr)
        return serializer.serialize_newtype_struct(self.name, self.inner.bind(value))

    def deserialize(self, deserializer: Deserializer) -> Any:
        return deserializer.deserialize_newtype_struct(self.name, _NewtypeVisitor(self))


@dataclass(frozen=True, slots=True)
class TupleStruct(Shape):
    """A named tuple of positional fields; arity is not encoded."""

    name: str
    fields: tuple[Field, ...]
    cls: Any = None

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        values = _field_values(self.fields, value, self.cls, serializer)
        compound = serializer.serialize_tuple_struct(self.name, len(self.fields))
        for f, item in zip(self.fields, values):
            compound.serialize_field(f.shape.bind(item))
        return compound.end()

    def _build(self, values: list[Any]) -> Any:
        return self.cls(*values) if self.cls is not None else tuple(values)

    def deserialize(self, deserializer: Deserializer) -> Any:
        shapes = tuple(f.shape for f in self.fields)
        visitor = _ElementsVisitor(shapes, self._build, f"tuple struct {self.name}")
        return deserializer.deserialize_tuple_struct(self.name, len(shapes), visitor)


@dataclass(frozen=True, slots=True)
class Record(Shape):
    """A struct of named fields encoded in declaration order, without names."""

    name: str
    fields: tuple[Field, ...]
    cls: Any = None

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        values = _field_values(self.fields, value, self.cls, serializer)
        compound = serializer.serialize_struct(self.name, len(self.fields))
        for f, item in zip(self.fields, values):
            compound.serialize_field(f.shape.bind(item), f.name)
        return compound.end()

    def _build(self, values: list[Any]) -> Any:
        kwargs = {f.name: v for f, v in zip(self.fields, values)}
        return self.cls(**kwargs) if self.cls is not None else kwargs

    def deserialize(self, deserializer: Deserializer) -> Any:
        shapes = tuple(f.shape for f in self.fields)
        names = tuple(f.name for f in self.fields)
        visitor = _ElementsVisitor(shapes, self._build, f"struct {self.name}")
        return deserializer.deserialize_struct(self.name, names, visitor)


class VariantKind(StrEnum):
    """Payload layout of a union variant."""

    UNIT = auto()
    NEWTYPE = auto()
    TUPLE = auto()
    STRUCT = auto()


@dataclass(frozen=True, slots=True)
class Variant:
    """One case of a tagged union.

    `cls` is the class of this variant's values; `member` is the value itself
    for singleton variants such as enum members.
    """

    name: str
    kind: VariantKind = VariantKind.UNIT
    fields: tuple[Field, ...] = ()
    cls: Any = None
    member: Any = None

    def matches(self, value: Any) -> bool:
        if self.member is not None:
            return value is self.member
        if self.cls is not None:
            return type(value) is self.cls
        return isinstance(value, Tagged) and value.variant == self.name

    def payload(self, value: Any, serializer: Serializer) -> list[Any]:
        """Field values of a variant value, in declaration order."""
        if self.kind == VariantKind.UNIT:
            return []
        if self.cls is not None:
            return [getattr(value, f.name) for f in self.fields]
        if self.kind == VariantKind.NEWTYPE:
            return [value.value]
        return _field_values(self.fields, value.value, None, serializer)

    def build(self, values: list[Any]) -> Any:
        if self.member is not None:
            return self.member
        if self.cls is not None:
            return self.cls(*values)
        if self.kind == VariantKind.UNIT:
            return Tagged(self.name)
        if self.kind == VariantKind.NEWTYPE:
            return Tagged(self.name, values[0])
        if self.kind == VariantKind.TUPLE:
            return Tagged(self.name, tuple(values))
        return Tagged(self.name, {f.name: v for f, v in zip(self.fields, values)})


class _UnionVisitor(Visitor):
    def __init__(self, shape: "Union") -> None:
        self._shape = shape
        self.expecting = f"enum {shape.name}"

    def visit_enum(self, access: EnumAccess) -> Any:
        index, variant_access = access.variant()
        variant = self._shape.variants[index]
        shapes = tuple(f.shape for f in variant.fields)

        if variant.kind == VariantKind.UNIT:
            variant_access.unit_variant()
            return variant.build([])
        if variant.kind == VariantKind.NEWTYPE:
            return variant.build([variant_access.newtype_variant(shapes[0])])

        visitor = _ElementsVisitor(shapes, variant.build, f"variant {variant.name}")
        if variant.kind == VariantKind.TUPLE:
            return variant_access.tuple_variant(len(shapes), visitor)
        return variant_access.struct_variant(tuple(f.name for f in variant.fields), visitor)


@dataclass(frozen=True, slots=True)
class Union(Shape):
    """A tagged union; variants are indexed in declaration order."""

    name: str
    variants: tuple[Variant, ...]

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        for index, variant in enumerate(self.variants):
            if variant.matches(value):
                break
        else:
            raise serializer.custom(f"{value!r} is not a variant of {self.name}")

        values = variant.payload(value, serializer)
        if variant.kind == VariantKind.UNIT:
            return serializer.serialize_unit_variant(self.name, index, variant.name)
        if variant.kind == VariantKind.NEWTYPE:
            bound = variant.fields[0].shape.bind(values[0])
            return serializer.serialize_newtype_variant(self.name, index, variant.name, bound)

        if variant.kind == VariantKind.TUPLE:
            compound = serializer.serialize_tuple_variant(
                self.name, index, variant.name, len(variant.fields)
            )
        else:
            compound = serializer.serialize_struct_variant(
                self.name, index, variant.name, len(variant.fields)
            )
        for f, item in zip(variant.fields, values):
            compound.serialize_field(f.shape.bind(item), f.name)
        return compound.end()

    def deserialize(self, deserializer: Deserializer) -> Any:
        names = tuple(v.name for v in self.variants)
        return deserializer.deserialize_enum(self.name, names, _UnionVisitor(self))


@dataclass(frozen=True, slots=True)
class Custom(Shape):
    """Delegates to a class implementing the traversal protocol itself."""

    cls: Any

    def serialize_value(self, value: Any, serializer: Serializer) -> Any:
        return value.serialize(serializer)

    def deserialize(self, deserializer: Deserializer) -> Any:
        return self.cls.deserialize(deserializer)
