"""Precompress static assets into gzip and brotli siblings."""
from __future__ import annotations

import argparse
import logging

from .compress import PrecompressError, precompress
from .models import (
    DEFAULT_BROTLI_QUALITY,
    DEFAULT_GZIP_LEVEL,
    DEFAULT_INPUT_DIR,
    DEFAULT_MIN_SIZE,
    DEFAULT_SUFFIXES,
    PrecompressOptions,
)

logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="precompress", description=__doc__)
    parser.add_argument(
        "input_dir",
        nargs="?",
        default=str(DEFAULT_INPUT_DIR),
        help=f"Directory to scan (default: {DEFAULT_INPUT_DIR})",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Directory to write artifacts under, mirroring the input tree (default: input directory)",
    )
    parser.add_argument(
        "-s",
        "--include-suffixes",
        default=",".join(DEFAULT_SUFFIXES),
        help="Comma separated file name suffixes to compress",
    )
    parser.add_argument(
        "-a",
        "--algorithms",
        default="GZIP,BROTLI",
        help="Comma separated algorithms, run in the given order (default: GZIP,BROTLI)",
    )
    parser.add_argument(
        "-m",
        "--min-size",
        type=int,
        default=DEFAULT_MIN_SIZE,
        help=f"Skip files smaller than this many bytes (default: {DEFAULT_MIN_SIZE})",
    )
    parser.add_argument(
        "--gzip-level",
        type=int,
        default=DEFAULT_GZIP_LEVEL,
        help=f"Gzip compression level (default: {DEFAULT_GZIP_LEVEL})",
    )
    parser.add_argument(
        "--brotli-quality",
        type=int,
        default=DEFAULT_BROTLI_QUALITY,
        help=f"Brotli quality (default: {DEFAULT_BROTLI_QUALITY})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped and discarded files")
    return parser


def parse_options(parser: argparse.ArgumentParser, args: argparse.Namespace) -> PrecompressOptions:
    try:
        options = PrecompressOptions.from_strings(
            args.input_dir,
            args.output_dir,
            include_suffixes=args.include_suffixes,
            algorithms=args.algorithms,
            min_size=args.min_size,
            gzip_level=args.gzip_level,
            brotli_quality=args.brotli_quality,
        )
    except ValueError as exc:
        parser.error(str(exc))
    if not options.input_dir.is_dir():
        parser.error(f"input directory '{options.input_dir}' does not exist")
    return options


def main(argv: list[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )
    options = parse_options(parser, args)
    try:
        precompress(options)
    except PrecompressError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
