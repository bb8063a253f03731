"""Tests for hand-written traversal implementations"""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

from dataclasses import dataclass

import pytest

from bytebuffer import decode, encode
from bytebuffer.codec import (
    END,
    I32,
    STR,
    U16,
    CustomDecodeError,
    CustomEncodeError,
    Deserializer,
    InvalidTypeError,
    Serializer,
    UnsizedContainerError,
    Visitor,
)
from bytebuffer.codec.decoder import Decoder
from bytebuffer.codec.encoder import Encoder


class _PointVisitor(Visitor):
    expecting = "struct Point"

    def visit_seq(self, access):
        x = access.next_element(I32)
        y = access.next_element(I32)
        return Point(x, y)


class Point:
    """A type implementing the traversal protocol itself."""

    def __init__(self, x, y):
        self.x, self.y = x, y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)

    def serialize(self, serializer: Serializer):
        compound = serializer.serialize_struct("Point", 2)
        compound.serialize_field(I32.bind(self.x), "x")
        compound.serialize_field(I32.bind(self.y), "y")
        return compound.end()

    @classmethod
    def deserialize(cls, deserializer: Deserializer):
        return deserializer.deserialize_struct("Point", ("x", "y"), _PointVisitor())


class Port:
    """Validates its own range through the serializer's custom error."""

    def __init__(self, number):
        self.number = number

    def serialize(self, serializer: Serializer):
        if self.number == 0:
            raise serializer.custom("port 0 is reserved")
        return serializer.serialize_u16(self.number)

    @classmethod
    def deserialize(cls, deserializer: Deserializer):
        number = U16.deserialize(deserializer)
        if number == 0:
            raise deserializer.custom("port 0 is reserved")
        return cls(number)


class Countdown:
    """Serializes a sequence whose length the encoder must be told."""

    def __init__(self, start, sized=True):
        self.start = start
        self.sized = sized

    def serialize(self, serializer: Serializer):
        compound = serializer.serialize_seq(self.start if self.sized else None)
        for n in range(self.start, 0, -1):
            compound.serialize_element(U16.bind(n))
        return compound.end()


class Inventory:
    """Serializes item counts as a map, optionally without announcing its size."""

    def __init__(self, counts, sized=True):
        self.counts = counts
        self.sized = sized

    def serialize(self, serializer: Serializer):
        compound = serializer.serialize_map(len(self.counts) if self.sized else None)
        for name, count in self.counts.items():
            compound.serialize_key(STR.bind(name))
            compound.serialize_value(U16.bind(count))
        return compound.end()


class ShortWriter:
    """Promises two fields and writes one."""

    def serialize(self, serializer: Serializer):
        compound = serializer.serialize_tuple(2)
        compound.serialize_element(U16.bind(1))
        return compound.end()


@dataclass
class Endpoint:
    host: str
    port: Port


def describe_custom_types():
    def encodes_self_describing_values(expect):
        expect(encode(Point(1, -1))) == b"\x01\x00\x00\x00\xff\xff\xff\xff"

    def decodes_with_classmethod_seed(expect):
        expect(decode(b"\x01\x00\x00\x00\xff\xff\xff\xff", Point)) == Point(1, -1)

    def composes_inside_dataclasses(expect):
        endpoint = Endpoint("example.org", Port(8080))
        data = encode(endpoint)
        expect(data) == b"example.org\x04\x90\x1f"
        decoded = decode(data, Endpoint)
        expect(decoded.host) == "example.org"
        expect(decoded.port.number) == 8080

    def surfaces_custom_encode_errors(expect):
        with pytest.raises(CustomEncodeError) as exinfo:
            encode(Port(0))
        expect(str(exinfo.value)).includes("port 0 is reserved")

    def surfaces_custom_decode_errors(expect):
        with pytest.raises(CustomDecodeError):
            decode(b"\x00\x00", Port)


def describe_compounds():
    def encodes_sized_sequences(expect):
        expect(encode(Countdown(2))) == b"\x02" + b"\x00" * 7 + b"\x02\x00\x01\x00"

    def rejects_unsized_sequences(expect):
        with pytest.raises(UnsizedContainerError):
            encode(Countdown(2, sized=False))

    def encodes_sized_maps(expect):
        expect(encode(Inventory({"ab": 3}))) == b"\x01" + b"\x00" * 7 + b"ab\x04\x03\x00"

    def rejects_unsized_maps(expect):
        with pytest.raises(UnsizedContainerError) as exinfo:
            encode(Inventory({"ab": 3}, sized=False))
        expect(str(exinfo.value)).includes("map length must be known")

    def rejects_element_count_mismatch(expect):
        with pytest.raises(CustomEncodeError) as exinfo:
            encode(ShortWriter())
        expect(str(exinfo.value)).includes("expected 2 elements, got 1")

    def returns_end_when_sequence_is_exhausted(expect):
        class Collect(Visitor):
            def visit_seq(self, access):
                first = access.next_element(STR)
                second = access.next_element(STR)
                return first, second

        data = b"\x01" + b"\x00" * 7 + b"a\x04"
        decoder = Decoder(data)
        first, second = decoder.deserialize_seq(Collect())
        expect(first) == "a"
        expect(second is END) == True


def describe_visitor_defaults():
    def forwards_narrow_integers_to_widest(expect):
        class Widest(Visitor):
            def visit_i64(self, v):
                return ("i64", v)

            def visit_u64(self, v):
                return ("u64", v)

        expect(Decoder(b"\xff").deserialize_i8(Widest())) == ("i64", -1)
        expect(Decoder(b"\xff\xff").deserialize_u16(Widest())) == ("u64", 65535)

    def rejects_unexpected_kinds(expect):
        class OnlyStrings(Visitor):
            expecting = "a string"

            def visit_str(self, v):
                return v

        with pytest.raises(InvalidTypeError) as exinfo:
            Decoder(b"\x00\x00\x00\x00").deserialize_u32(OnlyStrings())
        expect(str(exinfo.value)) == "invalid type: unsigned integer, expected a string"

    def encoder_returns_bytes_from_every_callback(expect):
        encoder = Encoder()
        expect(encoder.serialize_unit_struct("Marker")) == b""
        expect(encoder.serialize_unit_variant("Dir", 3, "Right")) == b"\x03\x00\x00\x00"
        expect(encoder.serialize_newtype_struct("Meters", U16.bind(5))) == b"\x05\x00"
