"""
Deterministic detection and conversion rules.

This file exists to make the heuristics' constants explicit and enforceable.
"""

# Dialect sniffing
SAMPLE_LINE_LIMIT = 250
CANDIDATE_DELIMITERS = (",", ";", "\t", "|")  # order breaks score ties
FREQUENCY_WEIGHT = 0.7
CONSISTENCY_WEIGHT = 0.3
DEFAULT_DELIMITER = ","
DEFAULT_QUOTE = '"'
BACKSLASH_ESCAPE = "\\"
BACKSLASH_ESCAPE_PATTERN = '\\"'
DOUBLED_QUOTE_PATTERN = '""'

# File format classification
SPREADSHEET_EXTENSIONS = frozenset({"xlsx", "xlsm", "xlsb", "xls"})
TEXT_EXTENSIONS = frozenset({"csv", "tsv", "txt"})
MAGIC_LENGTH = 4
ZIP_MAGIC = b"PK"
OLE2_MAGIC = b"\xd0\xcf"

# Encoding
DEFAULT_ENCODING = "utf-8"
ENCODING_SAMPLE_BYTES = 64 * 1024

# Conversion
PROGRESS_INTERVAL = 10_000
SYNTHETIC_COLUMN = "column_{}"
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
INT64_MAX_DIGITS = len(str(INT64_MAX))
