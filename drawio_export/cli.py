"""
Command Line Interface
======================

drawio-export convert diagram.drawio -f cat-pdf -o diagram.pdf
drawio-export warm-cache
drawio-export serve --port 3000
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from drawio_export.core.exceptions import ExportError
from drawio_export.core.format.parser import get_supported_formats, parse_format
from drawio_export.core.rendering.exporter import build_options, get_exporter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drawio-export", description="Convert draw.io diagrams to PNG or PDF"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    convert = commands.add_parser("convert", help="Render a diagram file")
    convert.add_argument("input", type=Path, help="Diagram XML file")
    convert.add_argument(
        "-f", "--format", default="png",
        help=f"Output format (default: png, supported: {', '.join(get_supported_formats())})",
    )
    convert.add_argument("-o", "--output", type=Path, help="Output file (default: input with new extension)")
    convert.add_argument("--scale", type=float, default=1.0, help="Scale factor (default: 1)")
    convert.add_argument("--border", type=float, default=0, help="Border width (default: 0)")

    commands.add_parser("warm-cache", help="Download the engine assets into the cache")

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")

    return parser


async def convert(args: argparse.Namespace) -> Path:
    directive = parse_format(args.format)
    options = build_options({"scale": args.scale, "border": args.border})
    output = args.output or args.input.with_suffix(f".{directive.extension}")
    document = args.input.read_text(encoding="utf-8")

    data = await get_exporter().render(document, args.format, options)
    output.write_bytes(data)
    return output


async def warm_cache() -> Path:
    cache = get_exporter().cache
    await cache.ensure_all()
    return cache.cache_dir


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        from drawio_export.api.main import run_server

        run_server(args.host, args.port)
        return 0

    try:
        if args.command == "convert":
            output = asyncio.run(convert(args))
            print(f"Wrote {output}")
        else:
            print(f"Engine assets cached in {asyncio.run(warm_cache())}")
    except (ExportError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
