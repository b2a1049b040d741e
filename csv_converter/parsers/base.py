"""
Shared contract for the conversion drivers.

Both drivers configure a record source, stream its rows through the type
inferencer and write one compact JSON object per line to the output sink.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Protocol, Sequence, TextIO

from ..exceptions import OutputWriteError, SerializationError
from ..models import ConversionOptions, ConversionReport
from ..rules import PROGRESS_INTERVAL, SYNTHETIC_COLUMN

logger = logging.getLogger(__name__)


class Parser(Protocol):
    def convert_to_ndjson(
        self,
        input_path: Path,
        output_path: Optional[Path],
        options: ConversionOptions,
    ) -> ConversionReport: ...


def column_name(headers: Sequence[str], index: int) -> str:
    """Header at `index`, or a synthesized column_<index> for header-less columns."""
    if index < len(headers):
        return headers[index]
    return SYNTHETIC_COLUMN.format(index)


@contextmanager
def open_sink(output_path: Optional[Path]) -> Iterator[TextIO]:
    """Yield the output stream: a UTF-8 file, or stdout (flushed, never closed)."""
    if output_path is None:
        yield sys.stdout
        try:
            sys.stdout.flush()
        except OSError as exc:
            raise OutputWriteError(f"Failed to flush output: {exc.strerror or exc}") from exc
        return

    try:
        fh = open(output_path, "w", encoding="utf-8", newline="\n")
    except OSError as exc:
        raise OutputWriteError(f"Failed to create output file {str(output_path)!r}: {exc.strerror or exc}") from exc

    with fh:
        yield fh


class NdjsonWriter:
    """Writes records as newline-delimited JSON and counts them."""

    def __init__(self, stream: TextIO, progress_interval: Optional[int] = None):
        self.stream = stream
        self.progress_interval = progress_interval or PROGRESS_INTERVAL
        self.count = 0

    def write(self, record: Dict[str, Any]) -> None:
        try:
            line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Failed to serialize record {self.count + 1}: {exc}") from exc

        try:
            self.stream.write(line)
            self.stream.write("\n")
        except OSError as exc:
            raise OutputWriteError(f"Failed to write output: {exc.strerror or exc}") from exc

        self.count += 1
        if self.progress_interval and self.count % self.progress_interval == 0:
            logger.info("Processed %d records...", self.count)
