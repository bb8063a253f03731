"""Size calculation for encoded shapes."""

from dataclasses import dataclass
from enum import StrEnum, auto

from bytebuffer.codec import layout
from bytebuffer.codec.shapes import (
    Custom,
    Map,
    Newtype,
    Option,
    Primitive,
    Record,
    Seq,
    Shape,
    Tuple,
    TupleStruct,
    Union,
    Unit,
    UnitStruct,
    Variant,
    VariantKind,
)


class SizeKind(StrEnum):
    """Classification of size characteristics."""

    FIXED = auto()  # Min == Max, no variable components
    BOUNDED = auto()  # Variable but has calculable max (e.g., option<u32>)
    UNBOUNDED = auto()  # Contains a string, byte blob, seq or map


@dataclass(frozen=True)
class SizeInfo:
    """Size information for a shape."""

    min_size: int
    max_size: int | None  # None means unbounded
    kind: SizeKind

    @classmethod
    def of(cls, min_size: int, max_size: int | None) -> "SizeInfo":
        if max_size is None:
            kind = SizeKind.UNBOUNDED
        elif min_size == max_size:
            kind = SizeKind.FIXED
        else:
            kind = SizeKind.BOUNDED
        return cls(min_size, max_size, kind)

    @property
    def is_fixed(self) -> bool:
        return self.kind == SizeKind.FIXED

    @property
    def is_bounded(self) -> bool:
        return self.kind in (SizeKind.FIXED, SizeKind.BOUNDED)


def _total(sizes: list[SizeInfo], extra: int = 0) -> SizeInfo:
    total_min = extra + sum(s.min_size for s in sizes)
    total_max: int | None = extra
    for size in sizes:
        if total_max is not None and size.max_size is not None:
            total_max += size.max_size
        else:
            total_max = None
    return SizeInfo.of(total_min, total_max)


class SizeCalculator:
    """Calculate encoded sizes for shapes."""

    def calc_primitive_size(self, shape: Primitive) -> SizeInfo:
        """Calculate size for a primitive kind."""
        if shape.kind in layout.TYPE_SIZES:
            size = layout.TYPE_SIZES[shape.kind]
            return SizeInfo.of(size, size)

        if shape.kind == "str":
            # UTF-8 bytes followed by the sentinel
            return SizeInfo.of(1, None)

        if shape.kind == "bytes":
            return SizeInfo.of(0, None)

        raise ValueError(f"Unknown primitive kind: {shape.kind}")

    def calc_container_size(self, elements: list[SizeInfo]) -> SizeInfo:
        """Calculate size for a length-prefixed seq or map."""
        if all(e.max_size == 0 for e in elements):
            # Any number of zero-width elements still encodes as the length
            return SizeInfo.of(layout.LENGTH_WIDTH, layout.LENGTH_WIDTH)
        return SizeInfo.of(layout.LENGTH_WIDTH, None)

    def calc_variant_size(self, variant: Variant) -> SizeInfo:
        fields = [self.calc_size(f.shape) for f in variant.fields]
        extra = layout.VARIANT_INDEX_WIDTH
        if variant.kind in (VariantKind.TUPLE, VariantKind.STRUCT):
            extra += layout.LENGTH_WIDTH
        return _total(fields, extra)

    def calc_union_size(self, shape: Union) -> SizeInfo:
        variants = [self.calc_variant_size(v) for v in shape.variants]
        min_size = min(v.min_size for v in variants)
        max_sizes = [v.max_size for v in variants]
        if all(m is not None for m in max_sizes):
            max_size: int | None = max(m for m in max_sizes if m is not None)
        else:
            max_size = None
        return SizeInfo.of(min_size, max_size)

    def calc_size(self, shape: Shape) -> SizeInfo:
        """Calculate size for any shape."""
        if isinstance(shape, Primitive):
            return self.calc_primitive_size(shape)

        if isinstance(shape, (Unit, UnitStruct)):
            return SizeInfo.of(0, 0)

        if isinstance(shape, Option):
            inner = self.calc_size(shape.inner)
            max_size = 1 + inner.max_size if inner.max_size is not None else None
            return SizeInfo.of(1, max_size)

        if isinstance(shape, Seq):
            return self.calc_container_size([self.calc_size(shape.element)])

        if isinstance(shape, Map):
            return self.calc_container_size([self.calc_size(shape.key), self.calc_size(shape.value)])

        if isinstance(shape, Tuple):
            return _total([self.calc_size(s) for s in shape.elements])

        if isinstance(shape, (TupleStruct, Record)):
            return _total([self.calc_size(f.shape) for f in shape.fields])

        if isinstance(shape, Newtype):
            return self.calc_size(shape.inner)

        if isinstance(shape, Union):
            return self.calc_union_size(shape)

        if isinstance(shape, Custom):
            # Opaque to the calculator
            return SizeInfo.of(0, None)

        raise ValueError(f"Unknown shape: {shape!r}")


def calculate_size(shape: Shape) -> SizeInfo:
    """Calculate size information for a single shape."""
    return SizeCalculator().calc_size(shape)


def calculate_sizes(shapes: dict[str, Shape]) -> dict[str, SizeInfo]:
    """Calculate size information for named shapes."""
    calc = SizeCalculator()
    return {name: calc.calc_size(shape) for name, shape in shapes.items()}
