"""Encoder, decoder and traversal protocol for the bytebuffer format."""

from .api import decode as decode
from .api import encode as encode
from .derive import codec_field as codec_field
from .derive import shape_of as shape_of
from .errors import *
from .shapes import *
from .traversal import END as END
from .traversal import Deserialize as Deserialize
from .traversal import Deserializer as Deserializer
from .traversal import Serialize as Serialize
from .traversal import Serializer as Serializer
from .traversal import Visitor as Visitor
