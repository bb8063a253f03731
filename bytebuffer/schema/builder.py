"""Resolve parsed schema definitions into codec shapes."""

from bytebuffer.codec.shapes import (
    PRIMITIVES,
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

from .parser import ValidationError, parse_type
from .types import EnumDef, FieldDef, Schema, StructDef, TypeExpr


class ShapeBuilder:
    """Build shapes for schema definitions (with caching)."""

    def __init__(self, schema: Schema | None = None) -> None:
        self.schema = schema or Schema(structs=[], enums=[])
        self._defs: dict[str, StructDef | EnumDef] = {d.name: d for d in self.schema.structs}
        self._defs.update({d.name: d for d in self.schema.enums})
        self._cache: dict[str, Shape] = {}
        self._building: list[str] = []

    def shape(self, name: str) -> Shape:
        """Get the shape of a primitive or defined name."""
        if name in PRIMITIVES:
            return PRIMITIVES[name]
        if name in self._cache:
            return self._cache[name]
        if name not in self._defs:
            raise ValidationError(f"{name} is not declared")
        if name in self._building:
            cycle = " -> ".join(self._building[self._building.index(name) :] + [name])
            raise ValidationError(f"recursive types are not supported: {cycle}")

        self._building.append(name)
        try:
            definition = self._defs[name]
            if isinstance(definition, EnumDef):
                shape = self._build_enum(definition)
            else:
                shape = self._build_struct(definition)
        finally:
            self._building.pop()

        self._cache[name] = shape
        return shape

    def resolve(self, expr: TypeExpr) -> Shape:
        """Get the shape of a type expression."""
        if expr.kind == "named":
            if expr.name is None:
                raise ValueError("named type expression has no name")
            return self.shape(expr.name)
        args = [self.resolve(arg) for arg in expr.args]
        if expr.kind == "option":
            return Option(args[0])
        if expr.kind == "seq":
            return Seq(args[0])
        if expr.kind == "map":
            return Map(args[0], args[1])
        if expr.kind == "tuple":
            return Tuple(tuple(args))
        raise ValueError(f"Unknown type expression: {expr.kind}")

    def _fields(self, fields: list[FieldDef]) -> tuple[Field, ...]:
        return tuple(Field(f.name, self.resolve(f.type)) for f in fields)

    def _build_struct(self, definition: StructDef) -> Shape:
        fields = self._fields(definition.fields)
        if definition.kind == "unit":
            return UnitStruct(definition.name)
        if definition.kind == "newtype":
            return Newtype(definition.name, fields[0].shape)
        if definition.kind == "tuple":
            return TupleStruct(definition.name, fields)
        return Record(definition.name, fields)

    def _build_enum(self, definition: EnumDef) -> Union:
        variants = tuple(
            Variant(v.name, VariantKind(v.kind), self._fields(v.fields)) for v in definition.variants
        )
        return Union(definition.name, variants)


def build_shapes(schema: Schema) -> dict[str, Shape]:
    """Build the shape of every definition in a schema."""
    builder = ShapeBuilder(schema)
    return {name: builder.shape(name) for name in schema.names()}


def parse_shape(text: str, schema: Schema | None = None) -> Shape:
    """Parse a type expression and resolve it against a schema."""
    return ShapeBuilder(schema).resolve(parse_type(text))
