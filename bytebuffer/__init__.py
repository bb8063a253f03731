"""bytebuffer - Non-self-describing binary codec driven by caller-supplied shapes."""

from importlib.metadata import PackageNotFoundError, version

from .codec import decode, encode

try:
    __version__ = version("bytebuffer")
except PackageNotFoundError:
    __version__ = "(local)"

__all__ = ["decode", "encode"]
