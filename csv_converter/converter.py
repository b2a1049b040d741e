"""
High-level conversion entry points.

convert_to_ndjson classifies the input and hands it to the matching driver;
the csv/xlsx variants skip classification.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

from .encoding import detect_encoding
from .format_detection import detect_csv_format, detect_file_format
from .models import ConversionOptions, ConversionReport, Dialect, FileFormat, LineTerminator
from .parsers.csv_parser import CsvParser
from .parsers.xlsx_parser import XlsxParser
from .rules import DEFAULT_DELIMITER, DEFAULT_QUOTE

PathLike = Union[str, Path]


def _path(value: Optional[PathLike]) -> Optional[Path]:
    return Path(value) if value is not None else None


def build_options(no_type_conversion: bool = False, string_fields: Iterable[str] = ()) -> ConversionOptions:
    return ConversionOptions(no_type_conversion=no_type_conversion, string_fields=frozenset(string_fields))


def resolve_dialect(
    input_path: PathLike,
    *,
    auto_detect: bool = True,
    delimiter: Optional[str] = None,
    quote: Optional[str] = None,
    escape: Optional[str] = None,
    encoding: Optional[str] = None,
) -> Dialect:
    """
    Sniffed dialect with manual overrides applied.

    With auto_detect off the conventional defaults are the base instead.
    escape="" forces doubled-quote escaping even if a backslash was detected.
    """
    if auto_detect:
        base = detect_csv_format(input_path, encoding=encoding)
    else:
        base = Dialect(delimiter=DEFAULT_DELIMITER, quote=DEFAULT_QUOTE, escape=None, line_terminator=LineTerminator.CRLF)

    if escape is None:
        resolved_escape = base.escape
    else:
        resolved_escape = escape or None

    return Dialect(
        delimiter=delimiter or base.delimiter,
        quote=quote or base.quote,
        escape=resolved_escape,
        line_terminator=base.line_terminator,
    )


def convert_csv_to_ndjson(
    input_path: PathLike,
    output_path: Optional[PathLike] = None,
    dialect: Optional[Dialect] = None,
    options: Optional[ConversionOptions] = None,
    encoding: Optional[str] = None,
) -> ConversionReport:
    parser = CsvParser(dialect, encoding=encoding or detect_encoding(input_path))
    return parser.convert_to_ndjson(Path(input_path), _path(output_path), options)


def convert_xlsx_to_ndjson(
    input_path: PathLike,
    output_path: Optional[PathLike] = None,
    options: Optional[ConversionOptions] = None,
    sheet_name: Optional[str] = None,
) -> ConversionReport:
    parser = XlsxParser(sheet_name)
    return parser.convert_to_ndjson(Path(input_path), _path(output_path), options)


def convert_to_ndjson(
    input_path: PathLike,
    output_path: Optional[PathLike] = None,
    options: Optional[ConversionOptions] = None,
    *,
    file_format: Optional[FileFormat] = None,
    dialect: Optional[Dialect] = None,
    encoding: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> ConversionReport:
    """Convert any supported file to NDJSON, detecting format and dialect as needed."""
    input_path = Path(input_path)
    file_format = FileFormat(file_format) if file_format else detect_file_format(input_path)

    if file_format is FileFormat.XLSX:
        return convert_xlsx_to_ndjson(input_path, output_path, options, sheet_name=sheet_name)

    encoding = encoding or detect_encoding(input_path)
    if dialect is None:
        dialect = detect_csv_format(input_path, encoding=encoding)
    return convert_csv_to_ndjson(input_path, output_path, dialect, options, encoding=encoding)
