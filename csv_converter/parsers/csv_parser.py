from __future__ import annotations

import csv
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..exceptions import InputReadError, MalformedRecordError
from ..models import ConversionOptions, ConversionReport, Dialect, FileFormat
from ..rules import DEFAULT_ENCODING
from ..value_conversion import convert_field_value
from .base import NdjsonWriter, column_name, open_sink

logger = logging.getLogger(__name__)


def _lift_field_size_limit() -> None:
    """Remove csv's 128 KiB per-field cap; large quoted fields are valid input."""
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            # sys.maxsize can exceed a C long (64-bit Windows)
            limit //= 2


class CsvParser:
    """Streams a delimited text file to NDJSON under a fixed Dialect."""

    def __init__(self, dialect: Optional[Dialect] = None, encoding: Optional[str] = None):
        self.dialect = dialect or Dialect()
        self.encoding = encoding or DEFAULT_ENCODING

    def _rows(self, reader: Any, path: Path) -> Iterator[List[str]]:
        try:
            for row in reader:
                # csv.reader yields [] for blank lines
                if row:
                    yield row
        except csv.Error as exc:
            raise MalformedRecordError(f"{path}: line {reader.line_num}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise InputReadError(f"Failed to decode {str(path)!r} as {self.encoding}: {exc.reason}") from exc

    def _records(
        self,
        rows: Iterator[List[str]],
        headers: List[str],
        options: ConversionOptions,
    ) -> Iterator[Dict[str, Any]]:
        for row in rows:
            record: Dict[str, Any] = {}
            for i, field in enumerate(row):
                name = column_name(headers, i)
                record[name] = convert_field_value(field, name, options)
            yield record

    def convert_to_ndjson(
        self,
        input_path: Path,
        output_path: Optional[Path] = None,
        options: Optional[ConversionOptions] = None,
    ) -> ConversionReport:
        options = options or ConversionOptions()
        input_path = Path(input_path)

        try:
            fh = input_path.open("r", encoding=self.encoding, newline="")
        except OSError as exc:
            raise InputReadError(f"Failed to open input file {str(input_path)!r}: {exc.strerror or exc}") from exc

        _lift_field_size_limit()
        with fh:
            reader = csv.reader(fh, **self.dialect.reader_options())
            rows = self._rows(reader, input_path)
            headers = next(rows, [])

            with open_sink(output_path) as sink:
                writer = NdjsonWriter(sink)
                for record in self._records(rows, headers, options):
                    writer.write(record)

        logger.info("Conversion complete! Processed %d records.", writer.count)
        return ConversionReport(
            format=FileFormat.CSV,
            records=writer.count,
            input_path=str(input_path),
            output_path=str(output_path) if output_path is not None else None,
            dialect=self.dialect,
            encoding=self.encoding,
        )
