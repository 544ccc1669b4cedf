"""SQLite database manager implementation.

This module provides the DatabaseManager class for handling connection
management, table creation and transactions for the registry tables.
"""

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pandas as pd

from portfolio_registry.utils.exceptions import StorageError
from portfolio_registry.utils.logging import get_logger

logger = get_logger(__name__)

IN_MEMORY = ":memory:"

# SQLite INTEGER is a signed 64-bit value
SQLITE_INTEGER_MIN = -(2**63)
SQLITE_INTEGER_MAX = 2**63 - 1


def fits_sqlite_integer(*values: int) -> bool:
    """Return True if every value can be bound as an SQLite INTEGER."""
    return all(SQLITE_INTEGER_MIN <= value <= SQLITE_INTEGER_MAX for value in values)


class DatabaseManager:
    """Manages SQLite database interactions.

    Every mutating registry operation runs inside :meth:`transaction`, which
    commits on success and rolls back on any exception, so a failed
    operation leaves no partial rows behind.

    Connections are thread-local. ``":memory:"`` is opened as a named
    shared-cache database, so every thread sees the same tables; it lives
    until the manager is garbage collected. Reads that run while another
    thread holds an open write transaction on it can fail with
    :class:`StorageError` ("table is locked"); file databases do not
    have that restriction.

    Attributes:
        db_path: Path to the SQLite database file, or ``":memory:"``.
    """

    def __init__(self, db_path: str):
        """Initialize database manager.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._uri = None
        self._keepalive = None
        if db_path == IN_MEMORY:
            self._uri = f"file:registry-{uuid.uuid4().hex}?mode=memory&cache=shared"
            # The shared database is dropped when its last connection closes
            self._keepalive = sqlite3.connect(self._uri, uri=True)
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self.create_tables()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a thread-local database connection."""
        if not hasattr(self._local, "connection"):
            if self._uri is not None:
                connection = sqlite3.connect(self._uri, uri=True)
            else:
                connection = sqlite3.connect(self.db_path)
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            self._local.connection = connection
        return self._local.connection

    def create_tables(self) -> None:
        """Create necessary database tables if they don't exist."""
        schema_path = Path(__file__).parent / "schema.sql"
        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = f.read()

            conn = self._get_connection()
            conn.executescript(schema)
            conn.commit()
            logger.info(f"Database initialized at {self.db_path}")
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to create tables: {e}")
            raise StorageError(f"Database initialization failed: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block of statements atomically.

        Registry errors raised inside the block propagate unchanged after
        the rollback; SQLite errors are wrapped in :class:`StorageError`.

        Example:
            >>> with db.transaction() as conn:
            ...     conn.execute("UPDATE portfolios SET active = 1")
        """
        conn = self._get_connection()
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Transaction rolled back: {e}")
            raise StorageError(f"Database error: {e}") from e

    def fetch_one(self, query: str, params: tuple = ()) -> sqlite3.Row | None:
        """Run a read query and return the first row, if any."""
        try:
            return self._get_connection().execute(query, params).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Query failed: {e}")
            raise StorageError(f"Database error: {e}") from e

    def fetch_all(self, query: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a read query and return every row."""
        try:
            return self._get_connection().execute(query, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Query failed: {e}")
            raise StorageError(f"Database error: {e}") from e

    def read_frame(self, query: str, params: tuple = ()) -> pd.DataFrame:
        """Run a read query and return the result as a DataFrame."""
        try:
            return pd.read_sql_query(query, self._get_connection(), params=params)
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            logger.error(f"Query failed: {e}")
            raise StorageError(f"Failed to load data: {e}") from e

    def close(self):
        """Close the thread-local connection."""
        if hasattr(self._local, "connection"):
            self._local.connection.close()
            del self._local.connection
