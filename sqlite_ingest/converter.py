"""
Converter

Entry point for embedding: owns one output database, is pointed at a
source file, and dispatches it to the tabular or audit-file pipeline.
"""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Union

from database_builder import SQLiteSink
from .errors import ConfigurationError, ConversionError, ConverterError
from .supported_formats import FileFormat, Pipeline, SupportedFormats
from .tabular_pipeline import TabularPipeline
from .xaf_parser import XafParser

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class SourceDescriptor:
    """The source a converter is currently pointed at."""

    def __init__(
        self,
        path: Path,
        file_format: FileFormat,
        table_prefix: Optional[str] = None,
        key_row: int = 1
    ):
        self.path = path
        self.file_format = file_format
        self.table_prefix = table_prefix
        self.key_row = key_row

    @property
    def pipeline(self) -> Pipeline:
        return SupportedFormats.get_pipeline(self.file_format)

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": str(self.path),
            "format": self.file_format.value,
            "table_prefix": self.table_prefix,
            "key_row": self.key_row
        }


class Converter:
    """
    Converts source files into tables of one SQLite database.

    Usage::

        with Converter("out.sqlite", source_path="ledger.xlsx") as converter:
            converter.convert()
            converter.change_source("audit.xaf", table_prefix="audit")
            converter.convert()
    """

    def __init__(
        self,
        output_path: PathLike,
        destroy_on_exit: bool = False,
        source_path: Optional[PathLike] = None,
        file_format: Optional[str] = None
    ):
        """
        Open the output database and optionally configure the first source.

        Args:
            output_path: Path of the ``.sqlite`` file to create or extend
            destroy_on_exit: Delete the output file when the converter closes
            source_path: Initial source file
            file_format: Format override for the initial source (``csv``, ``xlsx``, ...)

        Raises:
            ConfigurationError: If the output directory is not writable or
                the source is unusable
        """
        self.output_path = Path(output_path)
        self.destroy_on_exit = destroy_on_exit
        self.source: Optional[SourceDescriptor] = None

        output_dir = self.output_path.parent
        if not output_dir.is_dir():
            raise ConfigurationError(f"Output directory does not exist: {output_dir}")
        if not os.access(output_dir, os.W_OK):
            raise ConfigurationError(f"Output directory is not writable: {output_dir}")

        if source_path is not None:
            self.change_source(source_path, file_format)

        self.sink = SQLiteSink(str(self.output_path))

    def change_source(
        self,
        path: PathLike,
        file_format: Optional[str] = None,
        table_prefix: Optional[str] = None,
        key_row: int = 1
    ) -> SourceDescriptor:
        """
        Point the converter at a new source file.

        Args:
            path: Source file
            file_format: Format override; defaults to the file extension
            table_prefix: Prefix joined to every table name with ``_``
            key_row: 1-based row holding column names (spreadsheets)

        Returns:
            The new source descriptor

        Raises:
            ConfigurationError: If the file is missing, unreadable or of an
                unsupported format
        """
        path = Path(path)

        if not path.is_file():
            raise ConfigurationError(f"Source file not found: {path}")
        if not os.access(path, os.R_OK):
            raise ConfigurationError(f"Source file is not readable: {path}")

        format_name = file_format or path.suffix
        resolved = SupportedFormats.get_format(format_name) if format_name else None
        if resolved is None:
            raise ConfigurationError(
                f"Unsupported file format: {format_name or '(none)'}. "
                f"Supported extensions: {SupportedFormats.get_supported_extensions()}"
            )

        if isinstance(key_row, bool) or not isinstance(key_row, int) or key_row < 1:
            raise ConfigurationError(f"Key row must be a positive integer, got {key_row!r}")

        self.source = SourceDescriptor(path, resolved, table_prefix or None, key_row)
        logger.debug("Source set to %s", self.source.to_dict())
        return self.source

    def current_source_path(self) -> Optional[str]:
        """Path of the configured source, or None if none is set."""
        return str(self.source.path) if self.source else None

    def convert(self) -> Dict[str, int]:
        """
        Run the pipeline for the configured source.

        Returns:
            Mapping of table name to rows inserted

        Raises:
            ConfigurationError: If no source has been configured
            ConversionError: On any failure while reading or writing; the
                original exception is chained as the cause
        """
        if self.source is None:
            raise ConfigurationError("No source configured; call change_source() first")

        source = self.source
        logger.info("Converting %s (%s) into %s", source.path, source.file_format.value, self.output_path)

        try:
            if source.pipeline == Pipeline.AUDIT_XML:
                results = XafParser(self.sink).ingest(source.path, source.table_prefix)
            elif source.pipeline == Pipeline.SPREADSHEET:
                results = TabularPipeline(self.sink).ingest_spreadsheet(
                    source.path, source.table_prefix, source.key_row
                )
            else:
                results = TabularPipeline(self.sink).ingest_delimited(source.path, source.table_prefix)
            self.sink.commit()
        except ConverterError as e:
            logger.error("Conversion of %s failed: %s", source.path, e)
            self._commit_partial()
            raise ConversionError(str(source.path), str(e)) from e
        except Exception as e:
            logger.exception("Conversion of %s failed", source.path)
            self._commit_partial()
            raise ConversionError(str(source.path), f"{type(e).__name__}: {e}") from e

        logger.info("Converted %s: %d tables, %d rows",
                    source.path, len(results), sum(results.values()))
        return results

    def _commit_partial(self) -> None:
        # Rows written before a failure stay in the store
        if self.sink.closed:
            return
        try:
            self.sink.commit()
        except sqlite3.Error as e:
            logger.error("Could not commit partial output %s: %s", self.output_path, e)

    def close(self) -> None:
        """Close the output database; delete it if ``destroy_on_exit`` was set."""
        self.sink.close()
        if self.destroy_on_exit and self.output_path.exists():
            try:
                self.output_path.unlink()
                logger.info("Removed output %s", self.output_path)
            except OSError as e:
                logger.warning("Could not remove output %s: %s", self.output_path, e)

    def __enter__(self) -> "Converter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
