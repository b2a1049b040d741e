from __future__ import annotations

import math
import re
from typing import Optional, Union

from .models import ConversionOptions
from .rules import INT64_MAX, INT64_MAX_DIGITS, INT64_MIN

JsonScalar = Union[None, bool, int, float, str]

_INTEGER_RE = re.compile(r"-?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

_DEFAULT_OPTIONS = ConversionOptions()


def _parse_int(field: str) -> Optional[int]:
    if not _INTEGER_RE.fullmatch(field):
        return None
    negative = field.startswith("-")
    digits = field.lstrip("-").lstrip("0") or "0"
    # longer strings cannot fit int64, and int() rejects them past the str->int digit limit
    if len(digits) > INT64_MAX_DIGITS:
        return None
    value = -int(digits) if negative else int(digits)
    if INT64_MIN <= value <= INT64_MAX:
        return value
    return None


def _parse_float(field: str) -> Optional[float]:
    if not _FLOAT_RE.fullmatch(field):
        return None
    return float(field)


def has_leading_zero(field: str) -> bool:
    """True for values like zip codes and phone numbers ("02134"), not decimals ("0.5")."""
    return field.startswith("0") and len(field) > 1 and not field.startswith("0.")


def convert_field_value(
    field: str,
    header_name: str,
    options: ConversionOptions = _DEFAULT_OPTIONS,
) -> JsonScalar:
    """
    Map one raw field to a JSON value.

    Order:
    - no_type_conversion: empty -> null, anything else stays a string
    - column listed in string_fields: same as above
    - otherwise: empty -> null, true/false (any case) -> bool,
      leading-zero values stay strings, then int, then finite float,
      else the original string
    """
    if options.no_type_conversion or header_name in options.string_fields:
        return field if field else None

    if not field:
        return None

    lowered = field.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if has_leading_zero(field):
        return field

    as_int = _parse_int(field)
    if as_int is not None:
        return as_int

    as_float = _parse_float(field)
    if as_float is not None and math.isfinite(as_float):
        return as_float

    return field
