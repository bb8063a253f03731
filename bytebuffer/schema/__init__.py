"""Schema language for describing bytebuffer shapes in text."""

from .builder import ShapeBuilder as ShapeBuilder
from .builder import build_shapes as build_shapes
from .builder import parse_shape as parse_shape
from .parser import *
from .sizes import SizeCalculator as SizeCalculator
from .sizes import SizeInfo as SizeInfo
from .sizes import SizeKind as SizeKind
from .sizes import calculate_size as calculate_size
from .sizes import calculate_sizes as calculate_sizes
from .types import *
from .values import from_json as from_json
from .values import to_json as to_json
