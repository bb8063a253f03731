"""Type definitions produced by the schema parser."""

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin


@dataclass
class TypeExpr(DataClassJsonMixin):
    """A type expression.

    kind is "named" for primitives and defined names (with `name` set), or
    one of "option", "seq", "map", "tuple" with the element types in `args`.
    """

    kind: str
    name: str | None = None
    args: list["TypeExpr"] = field(default_factory=list)


@dataclass
class FieldDef(DataClassJsonMixin):
    """A field of a struct or variant. Positional fields are named "0", "1", ..."""

    name: str
    type: TypeExpr


@dataclass
class VariantDef(DataClassJsonMixin):
    """A variant of an enum.

    kind is one of "unit", "newtype", "tuple" or "struct".
    """

    name: str
    kind: str
    fields: list[FieldDef]


@dataclass
class StructDef(DataClassJsonMixin):
    """A struct definition.

    kind is one of "unit", "newtype", "tuple" or "struct".
    """

    name: str
    kind: str
    fields: list[FieldDef]


@dataclass
class EnumDef(DataClassJsonMixin):
    """An enum (tagged union) definition."""

    name: str
    variants: list[VariantDef]


@dataclass
class Schema(DataClassJsonMixin):
    """A complete schema document, definitions in source order."""

    structs: list[StructDef]
    enums: list[EnumDef]

    def names(self) -> list[str]:
        return [s.name for s in self.structs] + [e.name for e in self.enums]
