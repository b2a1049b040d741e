class ConversionError(Exception):
    """Base error for conversion operations."""


class InputReadError(ConversionError, OSError):
    """Raised when the input file cannot be opened, read or decoded."""


class OutputWriteError(ConversionError, OSError):
    """Raised when the output sink cannot be created or written."""


class MalformedRecordError(ConversionError):
    """Raised when a row cannot be tokenized under the configured dialect."""


class SheetNotFoundError(ConversionError):
    """Raised when the requested worksheet does not exist in the workbook."""


class UnsupportedFormatError(ConversionError):
    """Raised when no available reader can open the workbook."""


class SerializationError(ConversionError):
    """Raised when a record cannot be encoded as JSON."""
