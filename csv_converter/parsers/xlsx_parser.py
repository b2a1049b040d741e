"""
Spreadsheet driver.

- .xlsx / .xlsm (and ZIP-magic files) are read with openpyxl in read-only mode
- legacy .xls (and OLE2-magic files) are read with xlrd
- cells are stringified and re-enter the type inferencer, so the leading-zero
  and boolean rules behave the same as for CSV input
"""

from __future__ import annotations

import datetime as dt
import logging
import zipfile
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Sequence

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..exceptions import InputReadError, SheetNotFoundError, UnsupportedFormatError
from ..models import ConversionOptions, ConversionReport, FileFormat
from ..rules import INT64_MAX, INT64_MIN, MAGIC_LENGTH, OLE2_MAGIC, SYNTHETIC_COLUMN
from ..value_conversion import convert_field_value
from .base import NdjsonWriter, column_name, open_sink

logger = logging.getLogger(__name__)


def cell_to_text(value: Any) -> Optional[str]:
    """String form of a cell value; None for empty cells."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # 42.0 -> "42" so it re-infers as an integer
        if value.is_integer() and INT64_MIN <= value <= INT64_MAX:
            return str(int(value))
        return repr(value)
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, str):
        return value or None
    return str(value)


class OpenpyxlWorkbook:
    def __init__(self, path: Path):
        # openpyxl rejects unknown extensions by name; a file object skips that check
        self._fh: BinaryIO = path.open("rb")
        try:
            self._book = load_workbook(self._fh, read_only=True, data_only=True)
        except Exception:
            self._fh.close()
            raise

    @property
    def sheet_names(self) -> List[str]:
        return list(self._book.sheetnames)

    def rows(self, sheet_name: str) -> Iterator[Sequence[Any]]:
        sheet = self._book[sheet_name]
        # stored dimensions may be stale; ragged rows are padded in XlsxParser._record
        sheet.reset_dimensions()
        yield from sheet.iter_rows(min_row=1, values_only=True)

    def close(self) -> None:
        self._book.close()
        self._fh.close()


class XlrdWorkbook:
    def __init__(self, path: Path):
        self._book = xlrd.open_workbook(str(path), on_demand=True)

    @property
    def sheet_names(self) -> List[str]:
        return self._book.sheet_names()

    def _cell_value(self, cell: Any) -> Any:
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return None
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        if cell.ctype == xlrd.XL_CELL_DATE:
            try:
                return xlrd.xldate.xldate_as_datetime(cell.value, self._book.datemode)
            except xlrd.xldate.XLDateError:
                return cell.value
        if cell.ctype == xlrd.XL_CELL_ERROR:
            return "ERROR: " + xlrd.error_text_from_code.get(cell.value, str(cell.value))
        return cell.value

    def rows(self, sheet_name: str) -> Iterator[Sequence[Any]]:
        sheet = self._book.sheet_by_name(sheet_name)
        for r in range(sheet.nrows):
            yield [self._cell_value(cell) for cell in sheet.row(r)]

    def close(self) -> None:
        self._book.release_resources()


def _uses_xlrd(path: Path) -> bool:
    ext = path.suffix.lower().lstrip(".")
    if ext == "xls":
        return True
    if ext in ("xlsx", "xlsm"):
        return False
    with path.open("rb") as fh:
        return fh.read(MAGIC_LENGTH)[:2] == OLE2_MAGIC


def open_workbook(input_path: Path):
    """Open a workbook with whichever reader understands it."""
    if input_path.suffix.lower() == ".xlsb":
        raise UnsupportedFormatError(f"Binary workbooks (.xlsb) are not supported: {input_path}")

    try:
        if _uses_xlrd(input_path):
            return XlrdWorkbook(input_path)
        return OpenpyxlWorkbook(input_path)
    except OSError as exc:
        raise InputReadError(f"Failed to open input file {str(input_path)!r}: {exc.strerror or exc}") from exc
    except (InvalidFileException, zipfile.BadZipFile, KeyError, xlrd.XLRDError) as exc:
        raise UnsupportedFormatError(f"Failed to open workbook {str(input_path)!r}: {exc}") from exc


class XlsxParser:
    """Streams one worksheet to NDJSON; the first row is the header."""

    def __init__(self, sheet_name: Optional[str] = None):
        self.sheet_name = sheet_name

    def _select_sheet(self, names: List[str], input_path: Path) -> str:
        if self.sheet_name is not None:
            if self.sheet_name not in names:
                available = ", ".join(repr(n) for n in names)
                raise SheetNotFoundError(f"Sheet {self.sheet_name!r} not found in {input_path} (available: {available})")
            return self.sheet_name
        if not names:
            raise UnsupportedFormatError(f"No sheets found in workbook {input_path}")
        return names[0]

    def _record(
        self,
        headers: List[str],
        row: Sequence[Any],
        options: ConversionOptions,
    ) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        for i in range(max(len(headers), len(row))):
            text = cell_to_text(row[i]) if i < len(row) else None
            if i >= len(headers) and text is None:
                continue
            name = column_name(headers, i)
            record[name] = None if text is None else convert_field_value(text, name, options)
        return record

    def convert_to_ndjson(
        self,
        input_path: Path,
        output_path: Optional[Path] = None,
        options: Optional[ConversionOptions] = None,
    ) -> ConversionReport:
        options = options or ConversionOptions()
        input_path = Path(input_path)

        workbook = open_workbook(input_path)
        try:
            sheet_name = self._select_sheet(workbook.sheet_names, input_path)
            logger.info("Reading from sheet: %s", sheet_name)

            rows = iter(workbook.rows(sheet_name))
            header_row = next(rows, None)

            with open_sink(output_path) as sink:
                writer = NdjsonWriter(sink)
                if header_row is None:
                    logger.info("Sheet is empty, no records to process.")
                else:
                    headers = [
                        cell_to_text(value) or SYNTHETIC_COLUMN.format(i)
                        for i, value in enumerate(header_row)
                    ]
                    for row in rows:
                        writer.write(self._record(headers, row, options))
        finally:
            workbook.close()

        logger.info("Conversion complete! Processed %d records.", writer.count)
        return ConversionReport(
            format=FileFormat.XLSX,
            records=writer.count,
            input_path=str(input_path),
            output_path=str(output_path) if output_path is not None else None,
            sheet_name=sheet_name,
        )
