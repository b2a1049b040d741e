from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .rules import DEFAULT_DELIMITER, DEFAULT_QUOTE


class FileFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


class LineTerminator(str, Enum):
    CRLF = "\r\n"
    LF = "\n"


class Dialect(BaseModel):
    """Delimiter, quote, escape and terminator settings for one input file."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field(default=DEFAULT_DELIMITER, examples=[",", ";", "\t", "|"])
    quote: str = Field(default=DEFAULT_QUOTE)
    escape: Optional[str] = Field(default=None, examples=[None, "\\"])
    line_terminator: LineTerminator = LineTerminator.CRLF

    @field_validator("delimiter", "quote", "escape")
    @classmethod
    def _single_character(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) != 1:
            raise ValueError(f"expected a single character, got {value!r}")
        return value

    def reader_options(self) -> Dict[str, Any]:
        """Keyword arguments for csv.reader.

        Without an escape character the RFC 4180 doubled-quote convention applies.
        """
        options: Dict[str, Any] = {
            "delimiter": self.delimiter,
            "quotechar": self.quote,
            "lineterminator": self.line_terminator.value,
            "strict": True,
        }
        if self.escape is None:
            options["doublequote"] = True
        else:
            options["escapechar"] = self.escape
            options["doublequote"] = False
        return options

    def describe(self) -> str:
        escape = repr(self.escape) if self.escape is not None else 'double-quote ("")'
        return f"delimiter: {self.delimiter!r}, quote: {self.quote!r}, escape: {escape}"


class DelimiterCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    delimiter: str
    score: float


class ConversionOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    no_type_conversion: bool = False
    string_fields: FrozenSet[str] = Field(default_factory=frozenset)


class ConversionReport(BaseModel):
    format: FileFormat
    records: int = 0
    input_path: str
    output_path: Optional[str] = Field(default=None, examples=[None])
    dialect: Optional[Dialect] = None
    encoding: Optional[str] = None
    sheet_name: Optional[str] = None
