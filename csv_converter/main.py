from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .converter import build_options, convert_to_ndjson, resolve_dialect
from .encoding import detect_encoding
from .exceptions import ConversionError
from .format_detection import detect_file_format
from .models import FileFormat

logger = logging.getLogger("csv_converter")

PROG = "csv-converter"


def parse_char(value: str) -> str:
    """Single character from the command line; \\t or 'tab' means tab."""
    if value in ("\\t", "tab"):
        return "\t"
    if len(value) != 1:
        raise argparse.ArgumentTypeError(f"expected a single character, got {value!r}")
    return value


def parse_escape(value: str) -> str:
    """Like parse_char, but 'none' selects doubled-quote escaping (returned as '')."""
    if value.lower() == "none":
        return ""
    return parse_char(value)


def parse_field_list(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Converts CSV files and spreadsheets to newline-delimited JSON with automatic format detection.",
    )
    parser.add_argument("-i", "--input", required=True, type=Path, help="Input CSV or spreadsheet file.")
    parser.add_argument("-o", "--output", type=Path, help="Output NDJSON file (default: stdout).")
    parser.add_argument("-d", "--delimiter", type=parse_char, help="Override delimiter detection (e.g. ',', ';', '\\t').")
    parser.add_argument("-q", "--quote", type=parse_char, help="Override quote character detection (default: '\"').")
    parser.add_argument(
        "-e",
        "--escape",
        type=parse_escape,
        help="Override escape detection ('\\' for backslash escaping, 'none' for \"\" escaping).",
    )
    parser.add_argument("--no-auto-detect", action="store_true", help="Disable auto-detection and use standard CSV format.")
    parser.add_argument("--no-type-conversion", action="store_true", help="Keep all values as strings.")
    parser.add_argument(
        "--string-fields",
        type=parse_field_list,
        default=[],
        help="Comma-separated field names to keep as strings (e.g. 'zipcode,phone').",
    )
    parser.add_argument("--sheet", help="Sheet to read from a spreadsheet (default: first sheet).")
    parser.add_argument(
        "--format",
        dest="file_format",
        type=FileFormat,
        choices=list(FileFormat),
        metavar="{csv,xlsx}",
        help="Force the input format instead of detecting it.",
    )
    parser.add_argument("--encoding", help="Input text encoding (default: detected).")
    parser.add_argument("--log-level", default="INFO", help="Diagnostics log level (default: INFO).")
    return parser


def run(args: argparse.Namespace) -> None:
    options = build_options(args.no_type_conversion, args.string_fields)
    file_format = args.file_format or detect_file_format(args.input)

    if file_format is FileFormat.XLSX:
        if args.delimiter or args.quote or args.escape is not None or args.encoding:
            logger.warning("Delimiter, quote, escape and encoding options are ignored for spreadsheets")
        convert_to_ndjson(args.input, args.output, options, file_format=file_format, sheet_name=args.sheet)
        return

    if args.sheet:
        logger.warning("--sheet is ignored for delimited text input")

    encoding = args.encoding or detect_encoding(args.input)
    dialect = resolve_dialect(
        args.input,
        auto_detect=not args.no_auto_detect,
        delimiter=args.delimiter,
        quote=args.quote,
        escape=args.escape,
        encoding=encoding,
    )
    logger.info("Using %s", dialect.describe())

    convert_to_ndjson(
        args.input,
        args.output,
        options,
        file_format=file_format,
        dialect=dialect,
        encoding=encoding,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    logger.setLevel(log_level)

    try:
        run(args)
    except (ConversionError, OSError) as exc:
        print(f"{PROG}: error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
