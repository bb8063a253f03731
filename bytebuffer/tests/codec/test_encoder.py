"""Tests for the encoder"""

# pylint: disable=redefined-outer-name,unused-variable,expression-not-assigned,singleton-comparison

import struct

import pytest

from bytebuffer.codec import (
    BOOL,
    BYTES,
    CHAR,
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    STR,
    U8,
    U16,
    U32,
    U64,
    UNIT,
    CustomEncodeError,
    Field,
    Map,
    Newtype,
    Option,
    Record,
    Seq,
    Tagged,
    Tuple,
    TupleStruct,
    Union,
    UnitStruct,
    UnsizedContainerError,
    Variant,
    VariantKind,
    encode,
)

MESSAGE = Union(
    "Message",
    (
        Variant("Quit"),
        Variant("Move", VariantKind.STRUCT, (Field("x", I32), Field("y", I32))),
        Variant("Write", VariantKind.NEWTYPE, (Field("0", STR),)),
        Variant("Color", VariantKind.TUPLE, (Field("0", U8), Field("1", U8), Field("2", U8))),
    ),
)


def describe_primitives():
    def encodes_booleans(expect):
        expect(encode(True, BOOL)) == b"\x01"
        expect(encode(False, BOOL)) == b"\x00"

    def encodes_integers_little_endian(expect):
        expect(encode(-2, I8)) == b"\xfe"
        expect(encode(255, U8)) == b"\xff"
        expect(encode(0x0102, U16)) == b"\x02\x01"
        expect(encode(-1234, I16)) == b"\x2e\xfb"
        expect(encode(0x01020304, U32)) == b"\x04\x03\x02\x01"
        expect(encode(-1, I32)) == b"\xff\xff\xff\xff"
        expect(encode(1, U64)) == b"\x01" + b"\x00" * 7
        expect(encode(-(2**63), I64)) == b"\x00" * 7 + b"\x80"

    def encodes_fixed_widths(expect):
        expect(len(encode(True, BOOL))) == 1
        for shape in (I32, U32, F32, CHAR):
            value = "x" if shape is CHAR else 7
            expect(len(encode(value, shape))) == 4
        for shape in (I64, U64, F64):
            expect(len(encode(7, shape))) == 8

    def encodes_floats_as_bit_patterns(expect):
        expect(encode(1.5, F32)) == struct.pack("<I", 0x3FC00000)
        expect(encode(-1.23, F64)) == struct.pack("<d", -1.23)
        expect(encode(float("inf"), F32)) == b"\x00\x00\x80\x7f"

    def encodes_chars_as_code_points(expect):
        expect(encode("A", CHAR)) == b"\x41\x00\x00\x00"
        expect(encode("\U0001f600", CHAR)) == b"\x00\xf6\x01\x00"

    def encodes_strings_with_sentinel(expect):
        expect(encode("abc", STR)) == b"abc\x04"
        expect(encode("", STR)) == b"\x04"
        expect(encode("é", STR)) == b"\xc3\xa9\x04"

    def encodes_byte_blobs_raw(expect):
        expect(encode(b"\x00\x01\x04", BYTES)) == b"\x00\x01\x04"
        expect(encode(bytearray(b"ab"), BYTES)) == b"ab"
        expect(encode(b"", BYTES)) == b""

    def encodes_unit_as_nothing(expect):
        expect(encode(None, UNIT)) == b""
        expect(encode(None, UnitStruct("Marker"))) == b""

    def derives_shape_from_builtin_values(expect):
        expect(encode(True)) == b"\x01"
        expect(encode(3)) == b"\x03" + b"\x00" * 7
        expect(encode("hi")) == b"hi\x04"
        expect(encode(None)) == b""


def describe_primitive_validation():
    def rejects_out_of_range_integers(expect):
        with pytest.raises(CustomEncodeError) as exinfo:
            encode(256, U8)
        expect(str(exinfo.value)).includes("out of range for u8")

        with pytest.raises(CustomEncodeError):
            encode(-1, U64)

        with pytest.raises(CustomEncodeError):
            encode(2**63, I64)

    def rejects_wrong_python_types(expect):
        with pytest.raises(CustomEncodeError):
            encode("1", U8)
        with pytest.raises(CustomEncodeError):
            encode(1, BOOL)
        with pytest.raises(CustomEncodeError):
            encode(True, F64)
        with pytest.raises(CustomEncodeError) as exinfo:
            encode(True, U8)
        expect(str(exinfo.value)).includes("u8 requires an int, got bool")
        with pytest.raises(CustomEncodeError):
            encode(b"abc", STR)

    def rejects_f32_overflow(expect):
        with pytest.raises(CustomEncodeError) as exinfo:
            encode(1e39, F32)
        expect(str(exinfo.value)).includes("f32")

    def rejects_multi_character_chars(expect):
        with pytest.raises(CustomEncodeError):
            encode("ab", CHAR)
        with pytest.raises(CustomEncodeError):
            encode("", CHAR)

    def rejects_unencodable_strings(expect):
        with pytest.raises(CustomEncodeError):
            encode("\ud800", STR)


def describe_options():
    def encodes_none_as_zero(expect):
        expect(encode(None, Option(U8))) == b"\x00"

    def encodes_some_with_presence_byte(expect):
        expect(encode(7, Option(U8))) == b"\x01\x07"
        expect(encode("a", Option(STR))) == b"\x01a\x04"

    def encodes_byte_blob_payload_in_tail_position(expect):
        expect(encode(b"\x09\x09", Option(BYTES))) == b"\x01\x09\x09"


def describe_containers():
    def encodes_sequence_with_length_prefix(expect):
        expect(encode([1, 2, 3], Seq(U8))) == b"\x03" + b"\x00" * 7 + b"\x01\x02\x03"
        expect(encode([], Seq(U8))) == b"\x00" * 8

    def encodes_sequence_of_strings(expect):
        expect(encode(["a", "bc"], Seq(STR))) == b"\x02" + b"\x00" * 7 + b"a\x04bc\x04"

    def rejects_sequence_without_length(expect):
        with pytest.raises(UnsizedContainerError):
            encode((x for x in range(3)), Seq(U8))

    def rejects_strings_as_sequences(expect):
        with pytest.raises(CustomEncodeError):
            encode("abc", Seq(CHAR))

    def encodes_map_entries_in_iteration_order(expect):
        data = encode({1: "a", 2: "b"}, Map(U8, STR))
        expect(data) == b"\x02" + b"\x00" * 7 + b"\x01a\x04\x02b\x04"

    def rejects_non_mappings_as_maps(expect):
        with pytest.raises(CustomEncodeError):
            encode([(1, 2)], Map(U8, U8))

    def encodes_tuples_without_prefix(expect):
        expect(encode((1, "x", True), Tuple((U8, STR, BOOL)))) == b"\x01x\x04\x01"

    def rejects_tuples_of_wrong_arity(expect):
        with pytest.raises(CustomEncodeError):
            encode((1, 2), Tuple((U8, U8, U8)))


def describe_byte_blob_position():
    def allows_blob_as_final_field(expect):
        shape = Tuple((U16, BYTES))
        expect(encode((1, b"\xaa\xbb"), shape)) == b"\x01\x00\xaa\xbb"

    def rejects_blob_followed_by_sibling(expect):
        with pytest.raises(UnsizedContainerError):
            encode((b"\xaa", 1), Tuple((BYTES, U8)))

    def rejects_blob_in_sequence(expect):
        with pytest.raises(UnsizedContainerError):
            encode([b"\xaa"], Seq(BYTES))

    def rejects_blob_in_nested_non_final_composite(expect):
        inner = Tuple((U8, BYTES))
        with pytest.raises(UnsizedContainerError):
            encode(((1, b"\xaa"), 2), Tuple((inner, U8)))

    def rejects_blob_as_map_value(expect):
        with pytest.raises(UnsizedContainerError):
            encode({1: b"\xaa"}, Map(U8, BYTES))


def describe_structs():
    def encodes_records_in_declaration_order(expect):
        point = Record("Point", (Field("x", I16), Field("y", I16)))
        expect(encode({"y": 2, "x": 1}, point)) == b"\x01\x00\x02\x00"

    def reports_missing_record_fields(expect):
        point = Record("Point", (Field("x", I16), Field("y", I16)))
        with pytest.raises(CustomEncodeError) as exinfo:
            encode({"x": 1}, point)
        expect(str(exinfo.value)).includes("missing fields: y")

    def encodes_tuple_structs_without_prefix(expect):
        pair = TupleStruct("Pair", (Field("0", U8), Field("1", U8)))
        expect(encode((1, 2), pair)) == b"\x01\x02"

    def encodes_newtypes_transparently(expect):
        meters = Newtype("Meters", F64)
        expect(encode(2.5, meters)) == encode(2.5, F64)


def describe_unions():
    def encodes_unit_variant_as_index(expect):
        expect(encode(Tagged("Quit"), MESSAGE)) == b"\x00\x00\x00\x00"

    def encodes_second_variant_index(expect):
        shape = Union("Dir", (Variant("Left"), Variant("Right")))
        expect(encode(Tagged("Right"), shape)) == b"\x01\x00\x00\x00"

    def encodes_newtype_variant(expect):
        expect(encode(Tagged("Write", "hi"), MESSAGE)) == b"\x02\x00\x00\x00hi\x04"

    def encodes_struct_variant_with_field_count(expect):
        data = encode(Tagged("Move", {"x": 1, "y": -1}), MESSAGE)
        expect(data) == (
            b"\x01\x00\x00\x00" + b"\x02" + b"\x00" * 7 + b"\x01\x00\x00\x00" + b"\xff\xff\xff\xff"
        )

    def encodes_tuple_variant_with_field_count(expect):
        data = encode(Tagged("Color", (1, 2, 3)), MESSAGE)
        expect(data) == b"\x03\x00\x00\x00" + b"\x03" + b"\x00" * 7 + b"\x01\x02\x03"

    def rejects_unknown_variants(expect):
        with pytest.raises(CustomEncodeError) as exinfo:
            encode(Tagged("Jump"), MESSAGE)
        expect(str(exinfo.value)).includes("not a variant of Message")
