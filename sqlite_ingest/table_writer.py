"""
Declares one inferred table and streams rows into it.
"""

import logging
import sqlite3
from typing import Any, List, Optional, Sequence

from database_builder import SQLiteSink, build_insert_sql
from .errors import RowInsertError

logger = logging.getLogger(__name__)


class TableWriter:
    """Writes positional rows into a table declared from inferred columns."""

    def __init__(
        self,
        sink: SQLiteSink,
        table_name: str,
        columns: Sequence[str],
        integer_columns: Sequence[str] = ()
    ):
        """
        Declare the table and prepare its INSERT statement.

        Args:
            sink: Open output database
            table_name: Sanitized (and prefixed) table name
            columns: Unique, sanitized TEXT column names
            integer_columns: Synthesized INTEGER columns, written first
        """
        self.sink = sink
        self.table_name = table_name
        self.columns: List[str] = list(integer_columns) + list(columns)
        self.rows_written = 0

        sink.create_table(table_name, columns, integer_columns)
        self._statement = sink.prepare(build_insert_sql(table_name, self.columns))

    def insert(self, values: Sequence[Any]) -> Optional[int]:
        """
        Insert one row aligned to ``self.columns``.

        Returns:
            The primary key SQLite assigned to the row
        """
        row_number = self.rows_written + 1
        try:
            for position, value in enumerate(values, 1):
                self._statement.bind(position, value)
            rowid = self._statement.run()
        except (sqlite3.Error, IndexError) as e:
            raise RowInsertError(self.table_name, row_number, str(e)) from e
        self.rows_written = row_number
        return rowid

    def finish(self) -> int:
        logger.info("Inserted %d rows into %s", self.rows_written, self.table_name)
        return self.rows_written
