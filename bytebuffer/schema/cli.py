"""Command-line interface for encoding and decoding with schema shapes."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from functools import wraps
from typing import Any

import click
import structlog
from lark.exceptions import LarkError
from rich.console import Console
from rich.table import Table

from bytebuffer.codec import CodecError, decode, encode
from bytebuffer.codec.shapes import Shape, Union

from .builder import build_shapes, parse_shape
from .parser import SchemaError, parse
from .sizes import SizeInfo, calculate_size, calculate_sizes
from .types import Schema
from .values import from_json, to_json

LOG_LEVELS = ["debug", "info", "warning", "error"]


def setup_logging(level: str) -> None:
    """Send structlog output to stderr, dropping events below `level`."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )


def _reports_errors(func: Callable[..., None]) -> Callable[..., None]:
    """Print codec and schema failures as a one-line error and exit 1."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        try:
            func(*args, **kwargs)
        except (CodecError, SchemaError, LarkError, ValueError, OSError) as e:
            print(f"Error: {e}")
            sys.exit(1)

    return wrapper


def _read_schema(schema_file: str) -> Schema:
    with open(schema_file, encoding="utf-8") as f:
        return parse(f.read())


def _load_schema(schema_file: str | None) -> Schema | None:
    if schema_file is None:
        return None
    return _read_schema(schema_file)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default="warning",
    show_default=True,
    help="Minimum level of log events written to stderr",
)
def cli(log_level: str) -> None:
    """Encode and decode bytebuffer values described by a schema."""
    setup_logging(log_level)


@cli.command("encode")
@click.option("--shape", "-s", "shape_expr", required=True, help="Type expression, e.g. seq<u16>")
@click.option("--schema", "-i", "schema_file", default=None, help="Schema file defining names")
@click.option("--value", "-v", default=None, help="JSON value (read from stdin when omitted)")
@_reports_errors
def encode_command(shape_expr: str, schema_file: str | None, value: str | None) -> None:
    """Encode a JSON value and print the bytes as hex."""
    shape = parse_shape(shape_expr, _load_schema(schema_file))
    document = json.loads(value if value is not None else sys.stdin.read())
    print(encode(from_json(shape, document), shape).hex())


@cli.command("decode")
@click.option("--shape", "-s", "shape_expr", required=True, help="Type expression, e.g. seq<u16>")
@click.option("--schema", "-i", "schema_file", default=None, help="Schema file defining names")
@click.option("--hex", "-x", "hex_data", default=None, help="Hex bytes (read from stdin when omitted)")
@_reports_errors
def decode_command(shape_expr: str, schema_file: str | None, hex_data: str | None) -> None:
    """Decode hex bytes and print the value as JSON."""
    shape = parse_shape(shape_expr, _load_schema(schema_file))
    data = bytes.fromhex(hex_data if hex_data is not None else sys.stdin.read().strip())
    print(json.dumps(to_json(shape, decode(data, shape))))


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@_reports_errors
def info(input_file: str, output_json: bool) -> None:
    """Display schema definitions and their encoded sizes."""
    schema = _read_schema(input_file)
    shapes = build_shapes(schema)
    sizes = calculate_sizes(shapes)

    if output_json:
        _output_json(shapes, sizes)
    else:
        _output_plain(shapes, sizes)


@cli.command()
@click.option("--shape", "-s", "shape_expr", required=True, help="Type expression")
@click.option("--schema", "-i", "schema_file", default=None, help="Schema file defining names")
@_reports_errors
def size(shape_expr: str, schema_file: str | None) -> None:
    """Display the encoded size of a single type expression."""
    size_info = calculate_size(parse_shape(shape_expr, _load_schema(schema_file)))
    print(f"{shape_expr}: {_format_range(size_info)} ({size_info.kind.value})")


def _describe(shape: Shape) -> str:
    if isinstance(shape, Union):
        return "enum"
    return "struct"


def _format_size(size: int | None) -> str:
    """Format a size value, handling None for unbounded."""
    return "unbounded" if size is None else str(size)


def _format_range(info: SizeInfo) -> str:
    if info.min_size == info.max_size:
        return f"{info.min_size} bytes"
    return f"{info.min_size}-{_format_size(info.max_size)} bytes"


def _output_json(shapes: dict[str, Shape], sizes: dict[str, SizeInfo]) -> None:
    """Output schema info as JSON."""
    data: dict = {"types": {}}

    for name, info in sizes.items():
        data["types"][name] = {
            "kind": _describe(shapes[name]),
            "min_size": info.min_size,
            "max_size": info.max_size,
            "size_kind": info.kind.value,
        }

    print(json.dumps(data, indent=2))


def _output_plain(shapes: dict[str, Shape], sizes: dict[str, SizeInfo]) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Types[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Name", style="white")
    table.add_column("Kind", style="dim")
    table.add_column("Size", style="yellow", justify="right")
    table.add_column("Size Kind", style="dim")

    for name, info in sizes.items():
        table.add_row(name, _describe(shapes[name]), _format_range(info), info.kind.value)

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
