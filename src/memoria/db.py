"""Shared SQLite plumbing for the memoria stores."""

import sqlite3
from collections.abc import Iterable
from pathlib import Path
from typing import Any


class StorageError(Exception):
    """Raised when the underlying database cannot be read or written."""


class SQLiteStore:
    """Base class for stores backed by a single SQLite file.

    The connection is opened lazily and kept for the lifetime of the store.
    Every ``sqlite3.Error`` is re-raised as :class:`StorageError` so callers
    only deal with one failure type.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(self.db_path)
            except (OSError, sqlite3.Error) as e:
                raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        return self._conn

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        """Execute a statement and commit it."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(sql, tuple(params))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        return cursor

    def _query(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        """Run a read-only query and return all rows."""
        conn = self._get_connection()
        try:
            return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def _executescript(self, script: str) -> None:
        conn = self._get_connection()
        try:
            conn.executescript(script)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
