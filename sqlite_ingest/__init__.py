"""
SQLite Ingest Module

Converts delimited text, spreadsheet workbooks and XAF audit files into
SQLite tables whose shape is inferred from the data itself.
"""

from .converter import Converter, SourceDescriptor
from .errors import (
    ConfigurationError,
    ConversionError,
    ConverterError,
    RowInsertError,
    StructuralError,
)
from .supported_formats import FileFormat, Pipeline, SupportedFormats

__all__ = [
    'Converter', 'SourceDescriptor', 'FileFormat', 'Pipeline', 'SupportedFormats',
    'ConverterError', 'ConfigurationError', 'ConversionError', 'RowInsertError', 'StructuralError',
]
