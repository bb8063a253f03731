"""Schema definition parser using Lark."""

import os
from typing import Any

from lark import Lark, Token
from lark.visitors import Transformer

from bytebuffer.codec.shapes import PRIMITIVES

from .types import EnumDef, FieldDef, Schema, StructDef, TypeExpr, VariantDef

_g_parser: Lark | None = None


class SchemaError(RuntimeError):
    """Base class for schema failures."""


class ValidationError(SchemaError):
    """Raised when schema validation fails."""


def _present(args: list[Any]) -> list[Any]:
    # Optional grammar groups leave None placeholders behind
    return [a for a in args if a is not None]


def _positional(types: list[TypeExpr]) -> list[FieldDef]:
    return [FieldDef(name=str(i), type=t) for i, t in enumerate(types)]


class TreeTransformer(Transformer):
    """Transform parse tree into schema types."""

    def start(self, args: list[Any]) -> Schema:
        return Schema(
            structs=[a for a in args if isinstance(a, StructDef)],
            enums=[a for a in args if isinstance(a, EnumDef)],
        )

    def type_expr(self, args: list[Any]) -> TypeExpr:
        return args[0]

    def record_struct(self, args: list[Any]) -> StructDef:
        return StructDef(name=str(args[0]), kind="struct", fields=args[1])

    def tuple_struct(self, args: list[Any]) -> StructDef:
        types = args[1]
        kind = "newtype" if len(types) == 1 else "tuple"
        return StructDef(name=str(args[0]), kind=kind, fields=_positional(types))

    def unit_struct(self, args: list[Any]) -> StructDef:
        return StructDef(name=str(args[0]), kind="unit", fields=[])

    def enum(self, args: list[Any]) -> EnumDef:
        return EnumDef(name=str(args[0]), variants=_present(args[1:]))

    def unit_variant(self, args: list[Any]) -> VariantDef:
        return VariantDef(name=str(args[0]), kind="unit", fields=[])

    def tuple_variant(self, args: list[Any]) -> VariantDef:
        types = args[1]
        kind = "newtype" if len(types) == 1 else "tuple"
        return VariantDef(name=str(args[0]), kind=kind, fields=_positional(types))

    def struct_variant(self, args: list[Any]) -> VariantDef:
        return VariantDef(name=str(args[0]), kind="struct", fields=args[1])

    def fields(self, args: list[Any]) -> list[FieldDef]:
        return _present(args)

    def field(self, args: list[Any]) -> FieldDef:
        return FieldDef(name=str(args[0]), type=args[1])

    def types(self, args: list[Any]) -> list[TypeExpr]:
        return list(args)

    def option(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind="option", args=[args[0]])

    def seq(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind="seq", args=[args[0]])

    def map(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind="map", args=[args[0], args[1]])

    def tuple(self, args: list[Any]) -> TypeExpr:
        return TypeExpr(kind="tuple", args=_present(args))

    def named(self, args: list[Token]) -> TypeExpr:
        return TypeExpr(kind="named", name=str(args[0]))


def _type_names(expr: TypeExpr) -> list[str]:
    if expr.kind == "named":
        return [expr.name] if expr.name is not None else []
    return [name for arg in expr.args for name in _type_names(arg)]


def _check_fields(owner: str, fields: list[FieldDef]) -> None:
    seen: set[str] = set()
    for f in fields:
        if f.name in seen:
            raise ValidationError(f"{owner} declares field {f.name} more than once")
        seen.add(f.name)


def validate(schema: Schema) -> None:
    """Validate a parsed schema definition."""
    declared: set[str] = set()
    for name in schema.names():
        if name in PRIMITIVES:
            raise ValidationError(f"{name} is a primitive type and cannot be redefined")
        if name in declared:
            raise ValidationError(f"{name} is defined more than once")
        declared.add(name)

    referenced: list[tuple[str, FieldDef]] = []
    for struct in schema.structs:
        _check_fields(struct.name, struct.fields)
        referenced.extend((struct.name, f) for f in struct.fields)

    for enum in schema.enums:
        if not enum.variants:
            raise ValidationError(f"enum {enum.name} has no variants")
        variant_names: set[str] = set()
        for variant in enum.variants:
            if variant.name in variant_names:
                raise ValidationError(f"enum {enum.name} declares {variant.name} more than once")
            variant_names.add(variant.name)
            _check_fields(f"{enum.name}::{variant.name}", variant.fields)
            referenced.extend((enum.name, f) for f in variant.fields)

    for owner, f in referenced:
        for name in _type_names(f.type):
            if name not in PRIMITIVES and name not in declared:
                raise ValidationError(f"{owner} uses {name}, but it is not declared")


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/shape.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, start=["start", "type_expr"])

    return _g_parser


def parse(text: str) -> Schema:
    """Parse a schema definition file."""
    tree = _get_parser().parse(text, start="start")
    schema = TreeTransformer().transform(tree)
    validate(schema)
    return schema


def parse_type(text: str) -> TypeExpr:
    """Parse a single type expression, e.g. "seq<option<u8>>"."""
    tree = _get_parser().parse(text, start="type_expr")
    return TreeTransformer().transform(tree)
