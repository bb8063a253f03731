"""Round-trip tests over every kind"""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, ClassVar

from pytest import approx

from bytebuffer import decode, encode
from bytebuffer.codec import codec_field


class Direction(Enum):
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4


@dataclass
class Header:
    version: int = codec_field(type="u8")
    flags: int = codec_field(type="u16")


@dataclass
class Reading:
    sensor: int = codec_field(type="u8")
    celsius: float = codec_field(type="f32")
    label: str | None = None


@dataclass
class Packet:
    header: Header
    readings: list[Reading]
    heading: Direction
    tags: dict[str, int] = field(default_factory=dict)
    payload: bytes = b""


@dataclass
class Meters:
    codec_kind: ClassVar[str] = "newtype"
    value: float


@dataclass
class Span:
    codec_kind: ClassVar[str] = "tuple"
    start: Annotated[int, "u32"]
    end: Annotated[int, "u32"]


@dataclass
class Quit:
    pass


@dataclass
class Move:
    x: Annotated[int, "i32"]
    y: Annotated[int, "i32"]


@dataclass
class Write:
    codec_kind: ClassVar[str] = "newtype"
    text: str


@dataclass
class Color:
    codec_kind: ClassVar[str] = "tuple"
    r: Annotated[int, "u8"]
    g: Annotated[int, "u8"]
    b: Annotated[int, "u8"]


Message = Quit | Move | Write | Color


def describe_primitive_roundtrips():
    def roundtrips_integers_at_their_limits(expect):
        for kind, (low, high) in {
            "i8": (-128, 127),
            "u8": (0, 255),
            "i16": (-32768, 32767),
            "u16": (0, 65535),
            "i32": (-(2**31), 2**31 - 1),
            "u32": (0, 2**32 - 1),
            "i64": (-(2**63), 2**63 - 1),
            "u64": (0, 2**64 - 1),
        }.items():
            expect(decode(encode(low, kind), kind)) == low
            expect(decode(encode(high, kind), kind)) == high

    def roundtrips_floats(expect):
        expect(decode(encode(-1.23, "f64"), "f64")) == -1.23
        expect(decode(encode(-1.23, "f32"), "f32")) == approx(-1.23, abs=1e-6)

    def roundtrips_text(expect):
        for text in ("", "abc", "héllo wörld", "\U0001f600"):
            expect(decode(encode(text, "str"), "str")) == text
            expect(decode(encode(text), str)) == text
        expect(decode(encode("\U0001f600", "char"), "char")) == "\U0001f600"

    def roundtrips_bytes(expect):
        expect(decode(encode(b"\x00\x04\xff"), bytes)) == b"\x00\x04\xff"


def describe_container_roundtrips():
    def roundtrips_lists_tuples_and_dicts(expect):
        value = [(1, "a"), (2, "b")]
        hint = list[tuple[int, str]]
        expect(decode(encode(value, hint), hint)) == value

        mapping = {"one": [1.0], "two": [2.0, 2.5]}
        hint = dict[str, list[float]]
        expect(decode(encode(mapping, hint), hint)) == mapping

    def roundtrips_variable_length_tuples(expect):
        hint = tuple[int, ...]
        expect(decode(encode((1, 2, 3), hint), hint)) == (1, 2, 3)

    def roundtrips_optionals(expect):
        hint = list[int | None]
        expect(decode(encode([1, None, 3], hint), hint)) == [1, None, 3]


def describe_dataclass_roundtrips():
    def roundtrips_nested_records(expect):
        packet = Packet(
            header=Header(version=1, flags=0x8001),
            readings=[Reading(sensor=3, celsius=21.5), Reading(sensor=4, celsius=-3.25, label="roof")],
            heading=Direction.LEFT,
            tags={"site": 7},
            payload=b"\x04\x04",
        )
        expect(decode(encode(packet), Packet)) == packet

    def encodes_packet_layout(expect):
        packet = Packet(header=Header(version=1, flags=2), readings=[], heading=Direction.DOWN)
        expect(encode(packet)) == (
            b"\x01\x02\x00"  # header
            + b"\x00" * 8  # readings
            + b"\x01\x00\x00\x00"  # heading
            + b"\x00" * 8  # tags
        )

    def roundtrips_newtypes_and_tuple_structs(expect):
        expect(decode(encode(Meters(2.5)), Meters)) == Meters(2.5)
        expect(encode(Span(1, 2))) == b"\x01\x00\x00\x00\x02\x00\x00\x00"
        expect(decode(encode(Span(1, 2)), Span)) == Span(1, 2)

    def roundtrips_every_variant_kind(expect):
        for message in (Quit(), Move(x=-5, y=9), Write("hello"), Color(1, 2, 3)):
            expect(decode(encode(message, Message), Message)) == message

    def roundtrips_enum_members(expect):
        for direction in Direction:
            data = encode(direction)
            expect(len(data)) == 4
            expect(decode(data, Direction) is direction) == True
