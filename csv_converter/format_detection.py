"""
File format classification and CSV dialect sniffing.

Responsibilities:
- decide between delimited text and spreadsheet from extension or magic bytes
- infer delimiter, quote and escape convention from a bounded line sample
"""

from __future__ import annotations

import logging
from collections import Counter
from itertools import islice
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .encoding import detect_encoding
from .exceptions import InputReadError
from .models import DelimiterCandidate, Dialect, FileFormat, LineTerminator
from .rules import (
    BACKSLASH_ESCAPE,
    BACKSLASH_ESCAPE_PATTERN,
    CANDIDATE_DELIMITERS,
    CONSISTENCY_WEIGHT,
    DEFAULT_DELIMITER,
    DEFAULT_QUOTE,
    DOUBLED_QUOTE_PATTERN,
    FREQUENCY_WEIGHT,
    MAGIC_LENGTH,
    OLE2_MAGIC,
    SAMPLE_LINE_LIMIT,
    SPREADSHEET_EXTENSIONS,
    TEXT_EXTENSIONS,
    ZIP_MAGIC,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def detect_file_format(file_path: PathLike) -> FileFormat:
    """Classify by extension first, then by magic bytes, defaulting to CSV."""
    path = Path(file_path)

    ext = path.suffix.lower().lstrip(".")
    if ext in SPREADSHEET_EXTENSIONS:
        return FileFormat.XLSX
    if ext in TEXT_EXTENSIONS:
        return FileFormat.CSV

    try:
        with path.open("rb") as fh:
            magic = fh.read(MAGIC_LENGTH)
    except OSError as exc:
        raise InputReadError(f"Failed to open {str(path)!r} for format detection: {exc.strerror or exc}") from exc

    if len(magic) == MAGIC_LENGTH and magic[:2] in (ZIP_MAGIC, OLE2_MAGIC):
        return FileFormat.XLSX

    return FileFormat.CSV


def read_sample(file_path: PathLike, encoding: str, limit: int = SAMPLE_LINE_LIMIT) -> List[str]:
    """Read up to `limit` lines from the start of the file, terminators stripped."""
    path = Path(file_path)
    try:
        with path.open("r", encoding=encoding, newline="") as fh:
            return [line.rstrip("\r\n") for line in islice(fh, limit)]
    except UnicodeDecodeError as exc:
        raise InputReadError(f"Failed to decode {str(path)!r} as {encoding}: {exc.reason}") from exc
    except OSError as exc:
        raise InputReadError(f"Failed to open {str(path)!r} for format detection: {exc.strerror or exc}") from exc


def rank_delimiters(lines: Sequence[str]) -> List[DelimiterCandidate]:
    """
    Score every candidate delimiter present in the sample, best first.

    score = average_count * (0.7 + 0.3 * consistency_ratio), where
    consistency_ratio is the share of lines agreeing on the most common
    per-line count. Equal scores keep CANDIDATE_DELIMITERS order.
    """
    non_empty = [line for line in lines if line]
    if not non_empty:
        return []

    candidates: List[DelimiterCandidate] = []
    for delim in CANDIDATE_DELIMITERS:
        counts = [line.count(delim) for line in non_empty]
        if not any(counts):
            continue

        average_count = sum(counts) / len(counts)
        agreeing = Counter(counts).most_common(1)[0][1]
        consistency_ratio = agreeing / len(counts)
        score = average_count * (FREQUENCY_WEIGHT + CONSISTENCY_WEIGHT * consistency_ratio)
        candidates.append(DelimiterCandidate(delimiter=delim, score=score))

    # sorted() is stable, so ties stay in candidate order
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def detect_delimiter(lines: Sequence[str]) -> str:
    ranked = rank_delimiters(lines)
    if ranked:
        logger.debug("Delimiter ranking: %s", ", ".join(f"{c.delimiter!r}={c.score:.3f}" for c in ranked))
        return ranked[0].delimiter
    return DEFAULT_DELIMITER


def detect_escape(lines: Sequence[str]) -> Optional[str]:
    """
    Backslash escaping only when \\" is seen and "" never is.

    Anything else, including mixed evidence, falls back to doubled quotes.
    """
    has_backslash_escape = any(BACKSLASH_ESCAPE_PATTERN in line for line in lines)
    has_double_quote_escape = any(DOUBLED_QUOTE_PATTERN in line for line in lines)

    if has_backslash_escape and not has_double_quote_escape:
        return BACKSLASH_ESCAPE
    return None


def sniff_dialect(lines: Sequence[str]) -> Dialect:
    if not lines:
        return Dialect()

    return Dialect(
        delimiter=detect_delimiter(lines),
        quote=DEFAULT_QUOTE,
        escape=detect_escape(lines),
        # csv.reader accepts either terminator, so this is informational
        line_terminator=LineTerminator.CRLF,
    )


def detect_csv_format(file_path: PathLike, encoding: Optional[str] = None) -> Dialect:
    """Infer the Dialect of a delimited text file from its first lines."""
    path = Path(file_path)
    if encoding is None:
        encoding = detect_encoding(path)
    return sniff_dialect(read_sample(path, encoding))
