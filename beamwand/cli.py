"""Command line entry point: ``beamwand <module>.beam``."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import DEFAULT_MAX_DEPTH, DEFAULT_MAX_INTEGER_BYTES, ParseOptions
from .exceptions import BeamParseError
from .framer import parse_file
from .logging_config import configure_logging
from .render import ast_to_dict, format_ast, write_json

LOGGER = logging.getLogger(__name__)

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beamwand",
        description="Decode compiled BEAM modules",
    )
    parser.add_argument("path", nargs="?", type=Path, help="Path to a .beam file")
    parser.add_argument(
        "--parser-only",
        action="store_true",
        help="Stop after parsing and print the decoded module",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format used with --parser-only (default: text)",
    )
    parser.add_argument("--json-out", type=Path, help="Write the decoded module as JSON to this path")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Nesting limit for self-referential operands (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--max-integer-bytes",
        type=int,
        default=DEFAULT_MAX_INTEGER_BYTES,
        help=f"Widest long-form integer accepted (default: {DEFAULT_MAX_INTEGER_BYTES})",
    )
    parser.add_argument("--log-file", type=Path, help="Also write log records to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.path is None:
        parser.print_help()
        return 0

    configure_logging(args.verbose, log_file=args.log_file)

    if not args.path.exists():
        LOGGER.error("File %s doesn't exist!", args.path)
        return 1

    if not (args.parser_only or args.json_out):
        LOGGER.error("Compiler mode is not supported yet; use --parser-only or --json-out")
        return 1

    try:
        options = ParseOptions(
            max_depth=args.max_depth,
            max_integer_bytes=args.max_integer_bytes,
        )
    except ValueError as exc:
        parser.error(str(exc))

    LOGGER.debug("Parsing %s", args.path)
    try:
        ast = parse_file(args.path, options)
    except BeamParseError as exc:
        LOGGER.error("%s: %s: %s", args.path, type(exc).__name__, exc)
        return 2

    LOGGER.info("Decoded %d chunk(s) from %s", len(ast), args.path)

    if args.parser_only:
        if args.format == "json":
            print(json.dumps(ast_to_dict(ast), indent=2))
        else:
            print(format_ast(ast))

    if args.json_out:
        write_json(args.json_out, ast)

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI wrapper
    raise SystemExit(main())
