"""
Converter exception hierarchy.

Configuration problems are raised before anything touches the output
database; everything that goes wrong inside ``Converter.convert()`` reaches
the caller as a ``ConversionError`` with the original exception chained.
"""


class ConverterError(Exception):
    """Base exception for all converter failures."""


class ConfigurationError(ConverterError):
    """Raised for a missing source, unwritable output or unsupported format."""


class StructuralError(ConverterError):
    """Raised when a source cannot be read into rows (bad XML, empty file)."""


class RowInsertError(ConverterError):
    """Raised when a single row cannot be written to the output database."""

    def __init__(self, table_name: str, row_number: int, message: str):
        super().__init__(f"Failed to insert row {row_number} into {table_name}: {message}")
        self.table_name = table_name
        self.row_number = row_number


class ConversionError(ConverterError):
    """Envelope raised by ``convert()``; the cause is kept in ``__cause__``."""

    def __init__(self, source_path: str, message: str):
        super().__init__(f"Conversion of {source_path} failed: {message}")
        self.source_path = source_path
