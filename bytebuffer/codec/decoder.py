"""Decoder: a Deserializer over a window of a byte buffer.

A Decoder owns an immutable [start, stop) window of the buffer and decodes
exactly one value from it, recording how many bytes it consumed. Composites
hand the remainder of their window to a fresh child Decoder per element and
advance past what each child consumed; there is no shared cursor.

A Decoder in tail position owns the rest of its scope: fixed-width values
must fill it exactly, strings end at its final byte and byte blobs take all
of it. Otherwise the value is read from the front of the window.

A length word is only bounded by the buffer when elements occupy bytes, so
containers of zero-width elements are capped at layout.MAX_EMPTY_ELEMENTS.
"""

from typing import Any

from . import layout
from .errors import (
    CustomDecodeError,
    EmptyInputError,
    InvalidValueError,
    MalformedTextError,
    ShapeMismatchError,
    TerminatorNotFoundError,
    UnsupportedRequestError,
)
from .traversal import (
    END,
    Deserialize,
    Deserializer,
    EnumAccess,
    MapAccess,
    SeqAccess,
    VariantAccess,
    Visitor,
)


class Decoder(Deserializer):
    """Deserializer reading a single value from its window."""

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        start: int = 0,
        stop: int | None = None,
        *,
        tail: bool = True,
    ) -> None:
        self._data = data if isinstance(data, bytes) else bytes(data)
        self._start = start
        self._stop = len(self._data) if stop is None else stop
        self._tail = tail
        self.consumed = 0

    @property
    def remaining(self) -> int:
        return self._stop - self._start

    def child(self, offset: int, *, tail: bool) -> "Decoder":
        """Create a decoder over this window, starting `offset` bytes in."""
        return Decoder(self._data, self._start + offset, self._stop, tail=tail)

    def end(self) -> None:
        """Reject bytes left over after the value."""
        if self.consumed != self.remaining:
            raise ShapeMismatchError(f"{self.remaining - self.consumed} trailing bytes after value")

    def custom(self, msg: str) -> CustomDecodeError:
        return CustomDecodeError(msg)

    def _read_fixed(self, kind: str, offset: int = 0, *, exact: bool = False) -> int | float:
        size = layout.TYPE_SIZES[kind]
        available = self.remaining - offset
        if exact and available != size:
            raise ShapeMismatchError(f"expected exactly {size} bytes for {kind}, found {available}")
        if available < size:
            raise ShapeMismatchError(f"expected {size} bytes for {kind}, found {available}")
        return layout.unpack(kind, self._data, self._start + offset)

    def _read_primitive(self, kind: str) -> int | float:
        value = self._read_fixed(kind, exact=self._tail)
        self.consumed = layout.TYPE_SIZES[kind]
        return value

    def deserialize_any(self, visitor: Visitor) -> Any:
        raise UnsupportedRequestError("format is not self-describing, a shape must be requested")

    def deserialize_identifier(self, visitor: Visitor) -> Any:
        raise UnsupportedRequestError("identifiers are not encoded")

    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        raise UnsupportedRequestError("cannot skip a value of unknown shape")

    def deserialize_bool(self, visitor: Visitor) -> Any:
        value = self._read_primitive("bool")
        if value == 0:
            return visitor.visit_bool(False)
        if value == 1:
            return visitor.visit_bool(True)
        raise InvalidValueError(f"invalid value: {value}, expected a boolean")

    def deserialize_i8(self, visitor: Visitor) -> Any:
        return visitor.visit_i8(self._read_primitive("i8"))

    def deserialize_i16(self, visitor: Visitor) -> Any:
        return visitor.visit_i16(self._read_primitive("i16"))

    def deserialize_i32(self, visitor: Visitor) -> Any:
        return visitor.visit_i32(self._read_primitive("i32"))

    def deserialize_i64(self, visitor: Visitor) -> Any:
        return visitor.visit_i64(self._read_primitive("i64"))

    def deserialize_u8(self, visitor: Visitor) -> Any:
        return visitor.visit_u8(self._read_primitive("u8"))

    def deserialize_u16(self, visitor: Visitor) -> Any:
        return visitor.visit_u16(self._read_primitive("u16"))

    def deserialize_u32(self, visitor: Visitor) -> Any:
        return visitor.visit_u32(self._read_primitive("u32"))

    def deserialize_u64(self, visitor: Visitor) -> Any:
        return visitor.visit_u64(self._read_primitive("u64"))

    def deserialize_f32(self, visitor: Visitor) -> Any:
        return visitor.visit_f32(self._read_primitive("f32"))

    def deserialize_f64(self, visitor: Visitor) -> Any:
        return visitor.visit_f64(self._read_primitive("f64"))

    def deserialize_char(self, visitor: Visitor) -> Any:
        code_point = int(self._read_primitive("char"))
        if not layout.is_scalar_value(code_point):
            raise InvalidValueError(f"invalid value: {code_point:#x}, expected a char")
        return visitor.visit_char(chr(code_point))

    def deserialize_str(self, visitor: Visitor) -> Any:
        if self._tail:
            end = self._stop - 1
            if self.remaining == 0 or self._data[end] != layout.SENTINEL:
                raise TerminatorNotFoundError("string does not end with the terminator")
        else:
            end = self._data.find(layout.SENTINEL, self._start, self._stop)
            if end < 0:
                raise TerminatorNotFoundError("string terminator not found")

        try:
            text = self._data[self._start : end].decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedTextError(f"invalid UTF-8 in string: {e}") from e

        self.consumed = end + 1 - self._start
        return visitor.visit_str(text)

    def deserialize_bytes(self, visitor: Visitor) -> Any:
        if not self._tail:
            raise UnsupportedRequestError("byte blob must be the final value in its scope")
        self.consumed = self.remaining
        return visitor.visit_bytes(self._data[self._start : self._stop])

    def deserialize_option(self, visitor: Visitor) -> Any:
        if self.remaining == 0:
            raise EmptyInputError("expected an option tag, buffer is empty")

        tag = self._data[self._start]
        if tag == 0:
            # In tail position an absent value ends the scope
            self.consumed = self.remaining if self._tail else 1
            return visitor.visit_none()
        if tag == 1:
            inner = self.child(1, tail=self._tail)
            value = visitor.visit_some(inner)
            self.consumed = 1 + inner.consumed
            return value
        raise InvalidValueError(f"invalid value: {tag}, expected an option tag")

    def deserialize_unit(self, visitor: Visitor) -> Any:
        if self._tail and self.remaining:
            raise ShapeMismatchError(f"expected no bytes for unit, found {self.remaining}")
        self.consumed = 0
        return visitor.visit_unit()

    def _visit_elements(self, offset: int, length: int, visitor: Visitor, *, tail: bool) -> Any:
        access = ElementAccess(self, offset, length, tail=tail)
        value = visitor.visit_seq(access)
        access.finish()
        self.consumed = access.offset
        return value

    def deserialize_seq(self, visitor: Visitor) -> Any:
        length = int(self._read_fixed("u64"))
        return self._visit_elements(layout.LENGTH_WIDTH, length, visitor, tail=False)

    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any:
        return self._visit_elements(0, length, visitor, tail=self._tail)

    def deserialize_map(self, visitor: Visitor) -> Any:
        length = int(self._read_fixed("u64"))
        access = EntryAccess(self, layout.LENGTH_WIDTH, length)
        value = visitor.visit_map(access)
        access.finish()
        self.consumed = access.offset
        return value

    def deserialize_enum(self, name: str, variants: tuple[str, ...], visitor: Visitor) -> Any:
        index = int(self._read_fixed("u32"))
        if index >= len(variants):
            raise InvalidValueError(
                f"invalid value: variant index {index}, expected fewer than {len(variants)}"
            )
        self.consumed = layout.VARIANT_INDEX_WIDTH
        return visitor.visit_enum(UnionAccess(self, index))


def _check_empty_elements(length: int) -> None:
    if length > layout.MAX_EMPTY_ELEMENTS:
        raise InvalidValueError(
            f"invalid value: {length} zero-width elements, expected at most {layout.MAX_EMPTY_ELEMENTS}"
        )


class ElementAccess(SeqAccess):
    """Reads a known number of elements from consecutive child windows."""

    def __init__(self, decoder: Decoder, offset: int, length: int, *, tail: bool) -> None:
        self._decoder = decoder
        self._length = length
        self._remaining = length
        self._tail = tail
        self.offset = offset

    def size_hint(self) -> int | None:
        return self._remaining

    def next_element(self, seed: Deserialize) -> Any:
        if self._remaining == 0:
            return END
        self._remaining -= 1

        child = self._decoder.child(self.offset, tail=self._tail and self._remaining == 0)
        value = seed.deserialize(child)
        if child.consumed == 0:
            _check_empty_elements(self._length)
        self.offset += child.consumed
        return value

    def finish(self) -> None:
        if self._remaining:
            raise ShapeMismatchError(f"{self._remaining} elements were left unread")


class EntryAccess(MapAccess):
    """Reads a known number of key-value pairs."""

    def __init__(self, decoder: Decoder, offset: int, length: int) -> None:
        self._decoder = decoder
        self._length = length
        self._remaining = length
        self._entry_start = offset
        self.offset = offset

    def size_hint(self) -> int | None:
        return self._remaining

    def _read(self, seed: Deserialize) -> Any:
        child = self._decoder.child(self.offset, tail=False)
        value = seed.deserialize(child)
        self.offset += child.consumed
        return value

    def next_key(self, seed: Deserialize) -> Any:
        if self._remaining == 0:
            return END
        self._remaining -= 1
        self._entry_start = self.offset
        return self._read(seed)

    def next_value(self, seed: Deserialize) -> Any:
        value = self._read(seed)
        if self.offset == self._entry_start:
            _check_empty_elements(self._length)
        return value

    def finish(self) -> None:
        if self._remaining:
            raise ShapeMismatchError(f"{self._remaining} entries were left unread")


class UnionAccess(EnumAccess, VariantAccess):
    """Exposes the variant index already read and decodes its payload."""

    def __init__(self, decoder: Decoder, index: int) -> None:
        self._decoder = decoder
        self._index = index

    def variant(self) -> tuple[int, VariantAccess]:
        return self._index, self

    def unit_variant(self) -> None:
        self._decoder.consumed = layout.VARIANT_INDEX_WIDTH

    def newtype_variant(self, seed: Deserialize) -> Any:
        decoder = self._decoder
        child = decoder.child(layout.VARIANT_INDEX_WIDTH, tail=decoder._tail)
        value = seed.deserialize(child)
        decoder.consumed = layout.VARIANT_INDEX_WIDTH + child.consumed
        return value

    def _fields(self, length: int, visitor: Visitor) -> Any:
        decoder = self._decoder
        count = int(decoder._read_fixed("u64", layout.VARIANT_INDEX_WIDTH))
        if count != length:
            raise ShapeMismatchError(f"expected {length} variant fields, found {count}")
        offset = layout.VARIANT_INDEX_WIDTH + layout.LENGTH_WIDTH
        return decoder._visit_elements(offset, length, visitor, tail=decoder._tail)

    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        return self._fields(length, visitor)

    def struct_variant(self, fields: tuple[str, ...], visitor: Visitor) -> Any:
        return self._fields(len(fields), visitor)
