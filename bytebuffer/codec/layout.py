"""Byte layout rules shared by the encoder and the decoder.

Every multi-byte value is little-endian regardless of the host. Container
lengths are a 64-bit machine word and variant indices are 32-bit.
"""

import struct

BYTE_ORDER = "little"

# End-of-transmission byte terminating every string
SENTINEL = 0x04

LENGTH_WIDTH = 8
VARIANT_INDEX_WIDTH = 4

# Largest element count accepted for a container whose elements occupy no bytes
MAX_EMPTY_ELEMENTS = 1 << 20

# Map primitive kinds to struct format characters
FORMAT_CHARS = {
    "bool": "B",
    "i8": "b",
    "u8": "B",
    "i16": "h",
    "u16": "H",
    "i32": "i",
    "u32": "I",
    "i64": "q",
    "u64": "Q",
    "f32": "f",
    "f64": "d",
    "char": "I",
}

# Size in bytes for each fixed-width kind
TYPE_SIZES = {
    "bool": 1,
    "i8": 1,
    "u8": 1,
    "i16": 2,
    "u16": 2,
    "i32": 4,
    "u32": 4,
    "i64": 8,
    "u64": 8,
    "f32": 4,
    "f64": 8,
    "char": 4,
}

# Inclusive (min, max) range per integer kind
INT_RANGES = {
    "i8": (-(2**7), 2**7 - 1),
    "i16": (-(2**15), 2**15 - 1),
    "i32": (-(2**31), 2**31 - 1),
    "i64": (-(2**63), 2**63 - 1),
    "u8": (0, 2**8 - 1),
    "u16": (0, 2**16 - 1),
    "u32": (0, 2**32 - 1),
    "u64": (0, 2**64 - 1),
}

FLOAT32_MAX = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]

MAX_CODE_POINT = 0x10FFFF
SURROGATES = range(0xD800, 0xE000)

_STRUCTS = {kind: struct.Struct("<" + fmt) for kind, fmt in FORMAT_CHARS.items()}
LENGTH_STRUCT = _STRUCTS["u64"]
VARIANT_INDEX_STRUCT = _STRUCTS["u32"]


def pack(kind: str, value: int | float) -> bytes:
    """Pack a fixed-width value of the given kind."""
    return _STRUCTS[kind].pack(value)


def unpack(kind: str, data: bytes | memoryview, offset: int = 0) -> int | float:
    """Unpack a fixed-width value of the given kind starting at offset."""
    return _STRUCTS[kind].unpack_from(data, offset)[0]


def is_scalar_value(code_point: int) -> bool:
    """Check if a code point is a Unicode scalar value."""
    return 0 <= code_point <= MAX_CODE_POINT and code_point not in SURROGATES
