"""Generic value-traversal protocol.

A value describes itself to a Serializer by invoking one method per
component. A consumer describes the shape it expects to a Deserializer by
handing it a Visitor, which exposes one callback per kind. Container and
tagged-union kinds recurse into the same interfaces for their children.

Example (a hand-written point type):

    class Point:
        def __init__(self, x: int, y: int) -> None:
            self.x, self.y = x, y

        def serialize(self, serializer: Serializer) -> Any:
            compound = serializer.serialize_struct("Point", 2)
            compound.serialize_field(I32.bind(self.x), "x")
            compound.serialize_field(I32.bind(self.y), "y")
            return compound.end()

        @classmethod
        def deserialize(cls, deserializer: Deserializer) -> "Point":
            return deserializer.deserialize_struct("Point", ("x", "y"), _PointVisitor())
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from .errors import InvalidTypeError

# Returned by access objects once every element has been read
END: Any = object()


@runtime_checkable
class Serialize(Protocol):
    """Anything that can describe itself to a Serializer."""

    def serialize(self, serializer: "Serializer") -> Any: ...


@runtime_checkable
class Deserialize(Protocol):
    """Anything that can request a shape from a Deserializer."""

    def deserialize(self, deserializer: "Deserializer") -> Any: ...


class SerializeCompound(ABC):
    """Receives the children of a container, tuple, record or variant."""

    @abstractmethod
    def serialize_element(self, value: Serialize) -> None:
        raise NotImplementedError

    def serialize_field(self, value: Serialize, name: str | None = None) -> None:
        """Serialize a tuple-struct or record field. Names are never encoded."""
        self.serialize_element(value)

    def serialize_key(self, key: Serialize) -> None:
        self.serialize_element(key)

    def serialize_value(self, value: Serialize) -> None:
        self.serialize_element(value)

    def serialize_entry(self, key: Serialize, value: Serialize) -> None:
        self.serialize_key(key)
        self.serialize_value(value)

    @abstractmethod
    def end(self) -> Any:
        raise NotImplementedError


class Serializer(ABC):
    """One callback per value kind, invoked by the value being encoded."""

    @abstractmethod
    def custom(self, msg: str) -> Exception:
        """Build the error a value raises when its own validation fails."""
        raise NotImplementedError

    @abstractmethod
    def serialize_bool(self, v: bool) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_i8(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_i16(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_i32(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_i64(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_u8(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_u16(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_u32(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_u64(self, v: int) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_f32(self, v: float) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_f64(self, v: float) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_char(self, v: str) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_str(self, v: str) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_bytes(self, v: bytes | bytearray | memoryview) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_none(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_some(self, value: Serialize) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_unit(self) -> Any:
        raise NotImplementedError

    def serialize_unit_struct(self, name: str) -> Any:
        return self.serialize_unit()

    @abstractmethod
    def serialize_unit_variant(self, name: str, variant_index: int, variant: str) -> Any:
        raise NotImplementedError

    def serialize_newtype_struct(self, name: str, value: Serialize) -> Any:
        return value.serialize(self)

    @abstractmethod
    def serialize_newtype_variant(
        self, name: str, variant_index: int, variant: str, value: Serialize
    ) -> Any:
        raise NotImplementedError

    @abstractmethod
    def serialize_seq(self, length: int | None) -> SerializeCompound:
        raise NotImplementedError

    @abstractmethod
    def serialize_tuple(self, length: int) -> SerializeCompound:
        raise NotImplementedError

    def serialize_tuple_struct(self, name: str, length: int) -> SerializeCompound:
        return self.serialize_tuple(length)

    @abstractmethod
    def serialize_tuple_variant(
        self, name: str, variant_index: int, variant: str, length: int
    ) -> SerializeCompound:
        raise NotImplementedError

    @abstractmethod
    def serialize_map(self, length: int | None) -> SerializeCompound:
        raise NotImplementedError

    def serialize_struct(self, name: str, length: int) -> SerializeCompound:
        return self.serialize_tuple(length)

    @abstractmethod
    def serialize_struct_variant(
        self, name: str, variant_index: int, variant: str, length: int
    ) -> SerializeCompound:
        raise NotImplementedError


class SeqAccess(ABC):
    """Hands the elements of a sequence, tuple or record to a Visitor."""

    @abstractmethod
    def next_element(self, seed: Deserialize) -> Any:
        """Decode the next element, or return END when none remain."""
        raise NotImplementedError

    def size_hint(self) -> int | None:
        return None


class MapAccess(ABC):
    """Hands the entries of a map to a Visitor."""

    @abstractmethod
    def next_key(self, seed: Deserialize) -> Any:
        """Decode the next key, or return END when none remain."""
        raise NotImplementedError

    @abstractmethod
    def next_value(self, seed: Deserialize) -> Any:
        raise NotImplementedError

    def size_hint(self) -> int | None:
        return None


class VariantAccess(ABC):
    """Gives access to the payload of the selected variant."""

    @abstractmethod
    def unit_variant(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def newtype_variant(self, seed: Deserialize) -> Any:
        raise NotImplementedError

    @abstractmethod
    def tuple_variant(self, length: int, visitor: "Visitor") -> Any:
        raise NotImplementedError

    @abstractmethod
    def struct_variant(self, fields: tuple[str, ...], visitor: "Visitor") -> Any:
        raise NotImplementedError


class EnumAccess(ABC):
    """Identifies the selected variant of a tagged union."""

    @abstractmethod
    def variant(self) -> tuple[int, VariantAccess]:
        raise NotImplementedError


class Visitor:
    """Describes what a consumer expects, one callback per value kind.

    Every callback rejects its kind by default. Narrow integer and float
    callbacks forward to their widest sibling, so a visitor that accepts any
    signed integer only needs visit_i64.
    """

    expecting = "a value"

    def _invalid_type(self, kind: str) -> InvalidTypeError:
        return InvalidTypeError(f"invalid type: {kind}, expected {self.expecting}")

    def visit_bool(self, v: bool) -> Any:
        raise self._invalid_type("boolean")

    def visit_i8(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i16(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i32(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i64(self, v: int) -> Any:
        raise self._invalid_type("signed integer")

    def visit_u8(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u16(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u32(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u64(self, v: int) -> Any:
        raise self._invalid_type("unsigned integer")

    def visit_f32(self, v: float) -> Any:
        return self.visit_f64(v)

    def visit_f64(self, v: float) -> Any:
        raise self._invalid_type("floating point")

    def visit_char(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_str(self, v: str) -> Any:
        raise self._invalid_type("string")

    def visit_bytes(self, v: bytes) -> Any:
        raise self._invalid_type("byte array")

    def visit_none(self) -> Any:
        raise self._invalid_type("Option value")

    def visit_some(self, deserializer: "Deserializer") -> Any:
        raise self._invalid_type("Option value")

    def visit_unit(self) -> Any:
        raise self._invalid_type("unit value")

    def visit_newtype_struct(self, deserializer: "Deserializer") -> Any:
        raise self._invalid_type("newtype struct")

    def visit_seq(self, access: SeqAccess) -> Any:
        raise self._invalid_type("sequence")

    def visit_map(self, access: MapAccess) -> Any:
        raise self._invalid_type("map")

    def visit_enum(self, access: EnumAccess) -> Any:
        raise self._invalid_type("enum")


class Deserializer(ABC):
    """Decodes one value, steered by the kind the caller requests."""

    @abstractmethod
    def custom(self, msg: str) -> Exception:
        raise NotImplementedError

    @abstractmethod
    def deserialize_any(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_bool(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_i8(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_i16(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_i32(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_i64(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_u8(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_u16(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_u32(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_u64(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_f32(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_f64(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_char(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_str(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_bytes(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_option(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_unit(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    def deserialize_unit_struct(self, name: str, visitor: Visitor) -> Any:
        return self.deserialize_unit(visitor)

    def deserialize_newtype_struct(self, name: str, visitor: Visitor) -> Any:
        return visitor.visit_newtype_struct(self)

    @abstractmethod
    def deserialize_seq(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any:
        raise NotImplementedError

    def deserialize_tuple_struct(self, name: str, length: int, visitor: Visitor) -> Any:
        return self.deserialize_tuple(length, visitor)

    @abstractmethod
    def deserialize_map(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    def deserialize_struct(self, name: str, fields: tuple[str, ...], visitor: Visitor) -> Any:
        return self.deserialize_tuple(len(fields), visitor)

    @abstractmethod
    def deserialize_enum(self, name: str, variants: tuple[str, ...], visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_identifier(self, visitor: Visitor) -> Any:
        raise NotImplementedError

    @abstractmethod
    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        raise NotImplementedError
