"""Error taxonomy for the codec.

Encoding and decoding fail for structurally different reasons, so each
direction has its own hierarchy under CodecError.
"""


class CodecError(RuntimeError):
    """Base class for all encode and decode failures."""


class EncodeError(CodecError):
    """Raised when a value cannot be encoded."""


class UnsizedContainerError(EncodeError):
    """Raised when a container's length is not known up front."""


class CustomEncodeError(EncodeError):
    """Raised by a value's own traversal logic."""


class DecodeError(CodecError):
    """Raised when a byte sequence does not fit the requested shape."""


class ShapeMismatchError(DecodeError):
    """Raised when the remaining bytes do not match the expected width."""


class InvalidTypeError(ShapeMismatchError):
    """Raised when a visitor receives a kind it does not accept."""


class TerminatorNotFoundError(DecodeError):
    """Raised when a string has no trailing sentinel."""


class InvalidValueError(DecodeError):
    """Raised when bytes decode to a value outside the legal domain."""


class MalformedTextError(DecodeError):
    """Raised when string bytes are not valid UTF-8."""


class EmptyInputError(DecodeError):
    """Raised when at least one byte was required but none remain."""


class UnsupportedRequestError(DecodeError):
    """Raised when the caller asks the decoder to infer a shape."""


class CustomDecodeError(DecodeError):
    """Raised by a consumer's own deserialization logic."""
