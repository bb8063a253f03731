"""Map JSON documents to codec values and back.

Schema shapes carry no Python classes, so decoded values are plain: dicts
for records, tuples for tuple structs and `Tagged` for enum variants. The
JSON form of each shape is:

    bytes       hex string ("00ff")
    option<T>   null or the value of T
    seq<T>      array
    map<K, V>   array of [key, value] pairs
    (A, B)      array
    struct      object for record structs, array for tuple structs,
                the wrapped value for newtypes, null for unit structs
    enum        "Variant" for unit variants, {"Variant": payload} otherwise

`option<unit>` cannot tell None from Some(None) apart in JSON; null always
means None.
"""

from typing import Any

from bytebuffer.codec.shapes import (
    Custom,
    Map,
    Newtype,
    Option,
    Primitive,
    Record,
    Seq,
    Shape,
    Tagged,
    Tuple,
    TupleStruct,
    Union,
    Unit,
    UnitStruct,
    Variant,
    VariantKind,
)


def _expect_list(obj: Any, what: str, length: int | None = None) -> list[Any]:
    if not isinstance(obj, list):
        raise ValueError(f"{what} requires a JSON array, got {obj!r}")
    if length is not None and len(obj) != length:
        raise ValueError(f"{what} requires {length} elements, got {len(obj)}")
    return obj


def _expect_object(obj: Any, what: str) -> dict[str, Any]:
    if not isinstance(obj, dict):
        raise ValueError(f"{what} requires a JSON object, got {obj!r}")
    return obj


def _primitive_from_json(shape: Primitive, obj: Any) -> Any:
    kind = shape.kind
    if kind == "bytes":
        if not isinstance(obj, str):
            raise ValueError(f"bytes requires a hex string, got {obj!r}")
        return bytes.fromhex(obj)
    if kind in ("f32", "f64") and isinstance(obj, int) and not isinstance(obj, bool):
        return float(obj)
    # Remaining range and type checks happen when the value is encoded
    return obj


def _record_from_json(fields: Any, obj: Any, what: str) -> dict[str, Any]:
    members = _expect_object(obj, what)
    missing = [f.name for f in fields if f.name not in members]
    if missing:
        raise ValueError(f"{what} is missing fields: {', '.join(missing)}")
    return {f.name: from_json(f.shape, members[f.name]) for f in fields}


def _variant_from_json(shape: Union, obj: Any) -> Tagged:
    if isinstance(obj, str):
        name, payload = obj, None
    else:
        members = _expect_object(obj, f"enum {shape.name}")
        if len(members) != 1:
            raise ValueError(f"enum {shape.name} requires exactly one variant, got {list(members)}")
        ((name, payload),) = members.items()

    variant = _find_variant(shape, name)
    if variant.kind == VariantKind.UNIT:
        if payload is not None:
            raise ValueError(f"{shape.name}::{name} has no payload")
        return Tagged(name)
    if isinstance(obj, str):
        raise ValueError(f"{shape.name}::{name} requires a payload")

    if variant.kind == VariantKind.NEWTYPE:
        return Tagged(name, from_json(variant.fields[0].shape, payload))
    if variant.kind == VariantKind.TUPLE:
        items = _expect_list(payload, f"{shape.name}::{name}", len(variant.fields))
        return Tagged(name, tuple(from_json(f.shape, i) for f, i in zip(variant.fields, items)))
    return Tagged(name, _record_from_json(variant.fields, payload, f"{shape.name}::{name}"))


def _find_variant(shape: Union, name: str) -> Variant:
    for variant in shape.variants:
        if variant.name == name:
            return variant
    raise ValueError(f"{name} is not a variant of {shape.name}")


def from_json(shape: Shape, obj: Any) -> Any:
    """Convert a decoded JSON document into a value of the given shape."""
    if isinstance(shape, Primitive):
        return _primitive_from_json(shape, obj)

    if isinstance(shape, (Unit, UnitStruct)):
        if obj is not None:
            raise ValueError(f"unit requires null, got {obj!r}")
        return None

    if isinstance(shape, Option):
        return None if obj is None else from_json(shape.inner, obj)

    if isinstance(shape, Seq):
        return [from_json(shape.element, item) for item in _expect_list(obj, "seq")]

    if isinstance(shape, Map):
        result = {}
        for pair in _expect_list(obj, "map"):
            key, value = _expect_list(pair, "map entry", 2)
            converted = from_json(shape.key, key)
            item = from_json(shape.value, value)
            try:
                result[converted] = item
            except TypeError:
                raise ValueError(f"map key {key!r} cannot be used as a dict key") from None
        return result

    if isinstance(shape, Tuple):
        items = _expect_list(obj, "tuple", len(shape.elements))
        return tuple(from_json(s, i) for s, i in zip(shape.elements, items))

    if isinstance(shape, Newtype):
        return from_json(shape.inner, obj)

    if isinstance(shape, TupleStruct):
        items = _expect_list(obj, shape.name, len(shape.fields))
        return tuple(from_json(f.shape, i) for f, i in zip(shape.fields, items))

    if isinstance(shape, Record):
        return _record_from_json(shape.fields, obj, shape.name)

    if isinstance(shape, Union):
        return _variant_from_json(shape, obj)

    if isinstance(shape, Custom):
        raise ValueError(f"{shape.cls.__name__} has no JSON form")

    raise ValueError(f"Unknown shape: {shape!r}")


def _variant_to_json(shape: Union, value: Tagged) -> Any:
    variant = _find_variant(shape, value.variant)
    if variant.kind == VariantKind.UNIT:
        return variant.name
    if variant.kind == VariantKind.NEWTYPE:
        return {variant.name: to_json(variant.fields[0].shape, value.value)}
    if variant.kind == VariantKind.TUPLE:
        items = [to_json(f.shape, i) for f, i in zip(variant.fields, value.value)]
        return {variant.name: items}
    return {variant.name: {f.name: to_json(f.shape, value.value[f.name]) for f in variant.fields}}


def to_json(shape: Shape, value: Any) -> Any:
    """Convert a decoded value of the given shape into a JSON document."""
    if isinstance(shape, Primitive):
        return value.hex() if shape.kind == "bytes" else value

    if isinstance(shape, (Unit, UnitStruct)):
        return None

    if isinstance(shape, Option):
        return None if value is None else to_json(shape.inner, value)

    if isinstance(shape, Seq):
        return [to_json(shape.element, item) for item in value]

    if isinstance(shape, Map):
        return [[to_json(shape.key, k), to_json(shape.value, v)] for k, v in value.items()]

    if isinstance(shape, Tuple):
        return [to_json(s, i) for s, i in zip(shape.elements, value)]

    if isinstance(shape, Newtype):
        return to_json(shape.inner, value)

    if isinstance(shape, TupleStruct):
        return [to_json(f.shape, i) for f, i in zip(shape.fields, value)]

    if isinstance(shape, Record):
        return {f.name: to_json(f.shape, value[f.name]) for f in shape.fields}

    if isinstance(shape, Union):
        return _variant_to_json(shape, value)

    raise ValueError(f"{shape!r} has no JSON form")
