"""
Database Builder Module

The relational sink every pipeline writes into: a thin wrapper around one
SQLite connection with exec/prepare/bind/run operations, plus helpers that
describe the databases the converter has produced.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

PRIMARY_KEY_COLUMN = "id"


def quote_identifier(name: str) -> str:
    """Quote a sanitized identifier so SQL keywords (``desc``, ``order``) stay usable."""
    return f'"{name}"'


def build_create_table_sql(
    table_name: str,
    columns: Sequence[str],
    integer_columns: Sequence[str] = ()
) -> str:
    """
    Build the idempotent CREATE TABLE statement for an inferred table.

    Args:
        table_name: Sanitized table name
        columns: Sanitized TEXT column names, in order
        integer_columns: Synthesized INTEGER columns placed before the TEXT ones

    Returns:
        ``CREATE TABLE IF NOT EXISTS name (id INTEGER PRIMARY KEY, ...)``
    """
    col_defs = [f"{quote_identifier(PRIMARY_KEY_COLUMN)} INTEGER PRIMARY KEY"]
    col_defs += [f"{quote_identifier(name)} INTEGER" for name in integer_columns]
    col_defs += [f"{quote_identifier(name)} TEXT" for name in columns]
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} ({', '.join(col_defs)})"


def build_insert_sql(table_name: str, columns: Sequence[str]) -> str:
    """Build a positional INSERT for the given columns; ``id`` is left to SQLite."""
    if not columns:
        return f"INSERT INTO {quote_identifier(table_name)} DEFAULT VALUES"
    names = ', '.join(quote_identifier(name) for name in columns)
    placeholders = ', '.join('?' for _ in columns)
    return f"INSERT INTO {quote_identifier(table_name)} ({names}) VALUES ({placeholders})"


class Statement:
    """A prepared statement with 1-based positional bindings."""

    def __init__(self, connection: sqlite3.Connection, sql: str):
        self._connection = connection
        self.sql = sql
        self._parameter_count = sql.count('?')
        self._bindings: Dict[int, Any] = {}

    def bind(self, position: int, value: Any) -> None:
        """Bind a value to the placeholder at ``position`` (1-based)."""
        if position < 1 or position > self._parameter_count:
            raise IndexError(
                f"Binding position {position} out of range for {self._parameter_count} parameters"
            )
        self._bindings[position] = value

    def run(self) -> Optional[int]:
        """
        Execute the statement with the current bindings.

        Unbound placeholders are sent as NULL. Bindings are cleared after
        each run so the statement can be reused for the next row.

        Returns:
            The rowid of the inserted row, if any
        """
        values = [self._bindings.get(position) for position in range(1, self._parameter_count + 1)]
        self._bindings = {}
        cursor = self._connection.execute(self.sql, values)
        return cursor.lastrowid


class SQLiteSink:
    """One SQLite database file opened for writing."""

    def __init__(self, db_path: str):
        """
        Open (creating if needed) the database file.

        Args:
            db_path: Path of the ``.sqlite`` file
        """
        self.db_path = Path(db_path)
        self._connection: Optional[sqlite3.Connection] = sqlite3.connect(str(self.db_path))
        logger.debug("Opened database %s", self.db_path)

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise sqlite3.ProgrammingError(f"Database {self.db_path} is closed")
        return self._connection

    @property
    def closed(self) -> bool:
        return self._connection is None

    def execute(self, sql: str) -> None:
        """Execute a DDL or DML statement without parameters."""
        self.connection.execute(sql)

    def prepare(self, sql: str) -> Statement:
        """Prepare a parameterized statement."""
        return Statement(self.connection, sql)

    def create_table(
        self,
        table_name: str,
        columns: Sequence[str],
        integer_columns: Sequence[str] = ()
    ) -> None:
        """Declare a table; a no-op if it already exists."""
        self.execute(build_create_table_sql(table_name, columns, integer_columns))
        logger.info("Declared table %s with %d columns", table_name, len(columns) + len(integer_columns))

    def commit(self) -> None:
        self.connection.commit()

    def close(self) -> None:
        """Commit whatever has been written and close the connection."""
        if self._connection is None:
            return
        try:
            self._connection.commit()
        finally:
            self._connection.close()
            self._connection = None
            logger.debug("Closed database %s", self.db_path)

    def __enter__(self) -> "SQLiteSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def list_databases(db_directory: str) -> List[Dict[str, Any]]:
    """List all converted databases in a directory."""
    databases = []

    for db_file in sorted(Path(db_directory).glob("*.sqlite")):
        databases.append({
            "name": db_file.stem,
            "path": str(db_file),
            "size_bytes": db_file.stat().st_size,
            "created": datetime.fromtimestamp(db_file.stat().st_ctime).isoformat()
        })

    return databases


def get_database_info(db_path: str) -> Dict[str, Any]:
    """
    Describe the tables of a converted database.

    Args:
        db_path: Path of the ``.sqlite`` file

    Returns:
        Dictionary with the database name, path and per-table columns and row counts
    """
    db_path = Path(db_path)

    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")

    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY rowid")
        tables = cursor.fetchall()

        info = {
            "name": db_path.stem,
            "path": str(db_path),
            "tables": []
        }

        for (name,) in tables:
            cursor.execute(f"PRAGMA table_info({quote_identifier(name)})")
            columns = cursor.fetchall()

            cursor.execute(f"SELECT COUNT(*) FROM {quote_identifier(name)}")
            row_count = cursor.fetchone()[0]

            info["tables"].append({
                "name": name,
                "columns": [
                    {"name": col[1], "type": col[2], "primary_key": bool(col[5])}
                    for col in columns
                ],
                "row_count": row_count
            })
    finally:
        conn.close()

    return info
