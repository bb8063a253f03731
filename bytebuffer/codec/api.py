"""Top-level encode and decode entry points."""

from typing import Any

from structlog import get_logger

from .decoder import Decoder
from .derive import shape_of
from .encoder import Encoder
from .errors import DecodeError, EncodeError
from .shapes import Shape
from .traversal import Deserialize, Serialize

logger = get_logger()


def resolve(shape: Any) -> Shape:
    """Turn a shape, type hint or primitive name into a Shape."""
    return shape_of(shape)


def encode(value: Any, shape: Any = None) -> bytes:
    """Encode a value into a standalone buffer.

    Args:
        value: The value to encode.
        shape: Its shape, type hint or primitive name. When omitted the shape is
            derived from the value's type, or the value describes itself.

    Returns:
        The encoded bytes. No header or framing is added.
    """
    if shape is not None:
        target: Serialize = resolve(shape).bind(value)
    elif isinstance(value, Serialize) and not isinstance(value, type):
        target = value
    else:
        target = shape_of(type(value)).bind(value)

    log = logger.new(shape=repr(shape) if shape is not None else type(value).__name__)
    try:
        data = target.serialize(Encoder())
    except EncodeError as e:
        log.debug("encode failed", error=str(e))
        raise
    log.debug("encoded value", size=len(data))
    return data


def decode(data: bytes | bytearray | memoryview, shape: Any) -> Any:
    """Decode a value of the requested shape from a complete buffer.

    Args:
        data: The buffer, which must hold exactly one value.
        shape: A Shape, a type hint, a primitive name, or any object with a
            deserialize(deserializer) method.

    Returns:
        The decoded value.
    """
    seed: Deserialize = shape if isinstance(shape, Deserialize) else resolve(shape)
    log = logger.new(shape=repr(shape), size=len(data))

    decoder = Decoder(data)
    try:
        value = seed.deserialize(decoder)
        decoder.end()
    except DecodeError as e:
        log.debug("decode failed", error=str(e))
        raise
    log.debug("decoded value")
    return value
