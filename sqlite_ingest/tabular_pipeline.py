"""
Tabular Ingestion Pipeline

Reads delimited text files and spreadsheet workbooks whose key row names
the columns, and writes one table per file (delimited text) or per sheet
(spreadsheets).
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import chardet

from database_builder import SQLiteSink
from . import delimiter_detector, tabular_source
from .errors import StructuralError
from .identifiers import deduplicate, is_blank, sanitize, table_name
from .row_normalizer import normalize
from .table_writer import TableWriter
from .value_coercion import coerce

logger = logging.getLogger(__name__)

UTF16_BOMS = (b'\xff\xfe', b'\xfe\xff')
ENCODING_SAMPLE_SIZE = 10000


class TabularPipeline:
    """Ingests delimited text and spreadsheet sources into a sink."""

    def __init__(self, sink: SQLiteSink):
        """
        Initialize the pipeline.

        Args:
            sink: Open output database
        """
        self.sink = sink

    def ingest_delimited(self, file_path: Path, prefix: Optional[str] = None) -> Dict[str, int]:
        """
        Ingest a csv/txt file into a table named after the file.

        The first line is the key row: it names the columns and decides the
        delimiter.

        Args:
            file_path: Source file
            prefix: Optional table-name prefix

        Returns:
            Mapping of table name to rows inserted
        """
        file_path = Path(file_path)
        name = table_name(file_path.stem, prefix)

        with open(file_path, 'rb') as raw:
            encoding = self._detect_encoding(raw)
            with io.TextIOWrapper(raw, encoding=encoding, newline='') as stream:
                writer = self._write_delimited(stream, file_path, name, encoding)

        return {name: writer.finish()}

    def _write_delimited(self, stream: io.TextIOWrapper, file_path: Path, name: str, encoding: str) -> TableWriter:
        try:
            first_line = stream.readline()
        except UnicodeDecodeError as e:
            raise StructuralError(f"Could not decode first line of {file_path} as {encoding}") from e
        if not first_line.strip():
            raise StructuralError(f"No key row found in {file_path}: first line is empty")

        delimiter = delimiter_detector.detect(first_line)
        stream.seek(0)
        logger.debug("Detected delimiter %r and encoding %s for %s", delimiter, encoding, file_path)

        reader = csv.reader(stream, delimiter=delimiter)
        columns = self._delimited_columns(next(reader))
        writer = TableWriter(self.sink, name, columns)

        for row in reader:
            if not row:
                continue
            writer.insert(normalize([coerce(field) for field in row], columns))

        return writer

    def ingest_spreadsheet(
        self,
        file_path: Path,
        prefix: Optional[str] = None,
        key_row: int = 1
    ) -> Dict[str, int]:
        """
        Ingest every sheet of an xls/xlsx workbook.

        Args:
            file_path: Source workbook
            prefix: Optional table-name prefix
            key_row: 1-based row whose cells name the columns

        Returns:
            Mapping of table name to rows inserted, one entry per sheet that
            reached its key row
        """
        results = {}

        for sheet_name, rows in tabular_source.iter_sheets(Path(file_path)):
            name = table_name(sheet_name, prefix)
            writer = None
            columns: List[str] = []

            for row_number, row in enumerate(rows, 1):
                if row_number < key_row:
                    continue
                if row_number == key_row:
                    columns = self._spreadsheet_columns(row)
                    if not columns:
                        logger.warning("Key row %d of sheet %r has no usable column names, skipping sheet",
                                       key_row, sheet_name)
                        break
                    writer = TableWriter(self.sink, name, columns)
                    continue
                writer.insert(normalize([coerce(value) for value in row], columns))
            else:
                if writer is None:
                    logger.warning("Sheet %r has fewer than %d rows, skipping", sheet_name, key_row)

            if writer is not None:
                results[name] = writer.finish()

        return results

    def _detect_encoding(self, raw: io.BufferedReader) -> str:
        """Detect file encoding: UTF-16 by byte-order mark, otherwise chardet."""
        sample = raw.peek(ENCODING_SAMPLE_SIZE)[:ENCODING_SAMPLE_SIZE]
        if sample[:2] in UTF16_BOMS:
            return 'utf-16'
        encoding = chardet.detect(sample)['encoding'] or 'utf-8'
        if encoding.lower() == 'ascii':
            return 'utf-8'
        return encoding

    def _delimited_columns(self, key_row: Sequence[str]) -> List[str]:
        """Column names for a delimited file; blank header fields get ``column_<n>``."""
        names = []
        for index, label in enumerate(key_row, 1):
            name = sanitize(label.strip())
            names.append(name if name else f"column_{index}")
        return deduplicate(names)

    def _spreadsheet_columns(self, key_row: Sequence[Any]) -> List[str]:
        """Column names for a sheet; empty cells are dropped."""
        names = []
        for value in key_row:
            text = coerce(value)
            if text is None:
                continue
            name = sanitize(text.strip())
            if is_blank(name):
                continue
            names.append(name)
        return deduplicate(names)
