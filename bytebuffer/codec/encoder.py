"""Encoder: a Serializer producing the byte layout of a single value.

Every nested value is encoded by a fresh Encoder and its bytes are spliced
into the parent's buffer. An Encoder knows whether its value is the last
thing in its scope (tail position), which is the only place a byte blob may
appear since blobs carry no framing.
"""

import struct

from . import layout
from .errors import CustomEncodeError, UnsizedContainerError
from .traversal import Serialize, SerializeCompound, Serializer


class Compound(SerializeCompound):
    """Accumulates the encodings of a container's children."""

    def __init__(self, prefix: bytes, length: int, *, tail: bool = False) -> None:
        self._buffer = bytearray(prefix)
        self._length = length
        self._count = 0
        # Only the final child of a fixed-arity composite inherits tail position
        self._tail_index = length - 1 if tail else None

    def serialize_element(self, value: Serialize) -> None:
        tail = self._count == self._tail_index
        self._buffer.extend(value.serialize(Encoder(tail=tail)))
        self._count += 1

    def end(self) -> bytes:
        if self._count != self._length:
            raise CustomEncodeError(f"expected {self._length} elements, got {self._count}")
        return bytes(self._buffer)


class MapCompound(Compound):
    """Accumulates key-then-value encodings, counting entries by key."""

    def serialize_key(self, key: Serialize) -> None:
        self.serialize_element(key)

    def serialize_value(self, value: Serialize) -> None:
        self._buffer.extend(value.serialize(Encoder(tail=False)))


class Encoder(Serializer):
    """Serializer returning the encoded bytes from every callback."""

    def __init__(self, *, tail: bool = True) -> None:
        self._tail = tail

    def custom(self, msg: str) -> CustomEncodeError:
        return CustomEncodeError(msg)

    def _pack(self, kind: str, v: int | float) -> bytes:
        try:
            return layout.pack(kind, v)
        except (struct.error, OverflowError) as e:
            raise CustomEncodeError(f"cannot encode {v!r} as {kind}: {e}") from e

    def serialize_bool(self, v: bool) -> bytes:
        return b"\x01" if v else b"\x00"

    def serialize_i8(self, v: int) -> bytes:
        return self._pack("i8", v)

    def serialize_i16(self, v: int) -> bytes:
        return self._pack("i16", v)

    def serialize_i32(self, v: int) -> bytes:
        return self._pack("i32", v)

    def serialize_i64(self, v: int) -> bytes:
        return self._pack("i64", v)

    def serialize_u8(self, v: int) -> bytes:
        return self._pack("u8", v)

    def serialize_u16(self, v: int) -> bytes:
        return self._pack("u16", v)

    def serialize_u32(self, v: int) -> bytes:
        return self._pack("u32", v)

    def serialize_u64(self, v: int) -> bytes:
        return self._pack("u64", v)

    def serialize_f32(self, v: float) -> bytes:
        # IEEE-754 packing yields the same bytes as the u32 bit pattern
        return self._pack("f32", v)

    def serialize_f64(self, v: float) -> bytes:
        return self._pack("f64", v)

    def serialize_char(self, v: str) -> bytes:
        if len(v) != 1:
            raise CustomEncodeError(f"expected a single character, got {v!r}")
        return self._pack("u32", ord(v))

    def serialize_str(self, v: str) -> bytes:
        try:
            data = v.encode("utf-8")
        except UnicodeEncodeError as e:
            raise CustomEncodeError(f"string is not encodable as UTF-8: {e}") from e
        return data + bytes([layout.SENTINEL])

    def serialize_bytes(self, v: bytes | bytearray | memoryview) -> bytes:
        if not self._tail:
            raise UnsizedContainerError("byte blob must be the final value in its scope")
        return bytes(v)

    def serialize_none(self) -> bytes:
        return self.serialize_bool(False)

    def serialize_some(self, value: Serialize) -> bytes:
        return self.serialize_bool(True) + value.serialize(Encoder(tail=self._tail))

    def serialize_unit(self) -> bytes:
        return b""

    def serialize_unit_variant(self, name: str, variant_index: int, variant: str) -> bytes:
        return self.serialize_u32(variant_index)

    def serialize_newtype_variant(
        self, name: str, variant_index: int, variant: str, value: Serialize
    ) -> bytes:
        return self.serialize_u32(variant_index) + value.serialize(Encoder(tail=self._tail))

    def serialize_seq(self, length: int | None) -> Compound:
        if length is None:
            raise UnsizedContainerError("sequence length must be known before encoding")
        return Compound(self.serialize_u64(length), length)

    def serialize_tuple(self, length: int) -> Compound:
        return Compound(b"", length, tail=self._tail)

    def serialize_tuple_variant(
        self, name: str, variant_index: int, variant: str, length: int
    ) -> Compound:
        prefix = self.serialize_u32(variant_index) + self.serialize_u64(length)
        return Compound(prefix, length, tail=self._tail)

    def serialize_map(self, length: int | None) -> MapCompound:
        if length is None:
            raise UnsizedContainerError("map length must be known before encoding")
        return MapCompound(self.serialize_u64(length), length)

    def serialize_struct_variant(
        self, name: str, variant_index: int, variant: str, length: int
    ) -> Compound:
        return self.serialize_tuple_variant(name, variant_index, variant, length)
