"""
Text encoding detection for delimited input.

The same codec is used by the dialect sniffer and by the CSV driver, so the
sample and the stream always agree on how bytes map to characters.
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path
from typing import Union

from charset_normalizer import from_bytes

from .exceptions import InputReadError
from .rules import DEFAULT_ENCODING, ENCODING_SAMPLE_BYTES

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
WIDE_BOMS = (codecs.BOM_UTF32_LE, codecs.BOM_UTF32_BE, codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def _read_prefix(path: Path) -> bytes:
    try:
        with path.open("rb") as fh:
            raw = fh.read(ENCODING_SAMPLE_BYTES)
    except OSError as exc:
        raise InputReadError(f"Failed to open input file {str(path)!r}: {exc.strerror or exc}") from exc

    # Trim a truncated sample back to a line end so the detector never sees a
    # split UTF-8 or legacy multi-byte sequence. A 0x0a byte only marks a line
    # end in ASCII-compatible codecs, so UTF-16/32 samples are left whole.
    if len(raw) == ENCODING_SAMPLE_BYTES and not raw.startswith(WIDE_BOMS):
        cut = raw.rfind(b"\n")
        if cut > 0:
            raw = raw[: cut + 1]
    return raw


def _is_utf8(name: str) -> bool:
    return name.lower().replace("-", "_") in ("utf_8", "utf8", "ascii")


def guess_encoding(raw: bytes) -> str:
    """
    Best-effort codec name for a byte sample.

    Rules:
    - Empty input decodes as UTF-8.
    - A UTF-8 BOM selects utf-8-sig so the BOM never becomes part of a header.
    - Otherwise use charset-normalizer's best guess; ASCII widens to UTF-8.
    """
    if not raw:
        return DEFAULT_ENCODING
    if raw.startswith(UTF8_BOM):
        return "utf-8-sig"

    match = from_bytes(raw).best()
    if match is None:
        return DEFAULT_ENCODING

    detected = match.encoding
    if _is_utf8(detected):
        return DEFAULT_ENCODING
    return detected


def detect_encoding(path: Union[str, Path]) -> str:
    path = Path(path)
    encoding = guess_encoding(_read_prefix(path))
    logger.debug("Detected encoding %s for %s", encoding, path)
    return encoding
