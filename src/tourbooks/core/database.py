"""
SQLite database initialization and connection management.

Provides the book-account and book-transaction tables used by the
balance store. Uses singleton pattern for connection management.

Thread Safety Notes:
- Uses check_same_thread=False for multi-threaded access
- WAL mode is enabled for better concurrent read performance
- Use the transaction() context manager for atomic operations
- Balance updates additionally compare-and-swap on book_accounts.version
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from tourbooks.core.exceptions import DatabaseError, TourbooksError


# Amounts are stored as decimal text to avoid float drift.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS book_accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    account_type TEXT NOT NULL CHECK(account_type IN ('BANK','CASH')),
    opening_balance TEXT NOT NULL DEFAULT '0',
    current_balance TEXT NOT NULL DEFAULT '0',
    version INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS book_transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id INTEGER NOT NULL,
    txn_date DATE NOT NULL,
    kind TEXT NOT NULL CHECK(kind IN
        ('RECEIPT','INCOME','TRANSFER_IN','PAYMENT','EXPENSE','TRANSFER_OUT')),
    amount TEXT NOT NULL,
    description TEXT,
    reference TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (account_id) REFERENCES book_accounts(id) ON DELETE RESTRICT
);

CREATE INDEX IF NOT EXISTS idx_book_txn_account_date ON book_transactions(account_id, txn_date);
"""


class DatabaseManager:
    """
    Singleton manager for SQLite database connections.

    Usage:
        db = DatabaseManager()
        conn = db.init("/path/to/books.sqlite")
        # Use connection...
        db.close()
    """

    _instance: Optional["DatabaseManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "DatabaseManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._connection = None
                    cls._instance._db_path = None
        return cls._instance

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the current database connection."""
        if self._connection is None:
            raise DatabaseError("Database not initialized. Call init() first.")
        return self._connection

    def init(self, db_path: str) -> sqlite3.Connection:
        """
        Initialize the database.

        Args:
            db_path: Path to database file or ":memory:" for in-memory database

        Returns:
            Database connection

        Raises:
            DatabaseError: If initialization fails
        """
        try:
            self._db_path = db_path

            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

            # isolation_level=None: transactions are opened explicitly with BEGIN IMMEDIATE
            self._connection = sqlite3.connect(
                db_path, check_same_thread=False, isolation_level=None
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")

            if db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

            self._execute_schema()
            return self._connection

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to initialize database: {e}") from e

    def _execute_schema(self) -> None:
        """Create all tables if not exist."""
        try:
            self._connection.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to execute schema: {e}") from e

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a SQL statement."""
        return self.connection.execute(sql, params)

    @contextmanager
    def transaction(self):
        """
        Context manager for atomic transactions.

        Usage:
            db = DatabaseManager()
            with db.transaction() as conn:
                conn.execute("INSERT INTO book_transactions ...")
                conn.execute("UPDATE book_accounts ...")
            # Auto-commits on success, auto-rolls back on exception
        """
        with transaction(self.connection) as conn:
            yield conn

    def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            self._db_path = None

    def get_tables(self) -> list[str]:
        """Get list of all tables in database."""
        cursor = self.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
        )
        return [row[0] for row in cursor.fetchall()]

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)."""
        with cls._lock:
            if cls._instance and cls._instance._connection:
                cls._instance._connection.close()
            cls._instance = None


@contextmanager
def transaction(conn: sqlite3.Connection):
    """
    BEGIN IMMEDIATE ... COMMIT on a connection, rolling back on any error.

    Nested use joins the outer transaction. tourbooks errors raised inside the
    block propagate unchanged; sqlite errors are wrapped in DatabaseError.
    """
    if conn.in_transaction:
        yield conn
        return

    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except TourbooksError:
        conn.rollback()
        raise
    except sqlite3.Error as e:
        conn.rollback()
        raise DatabaseError(f"Transaction failed: {e}") from e
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


def get_connection() -> sqlite3.Connection:
    """Get the current database connection (convenience function)."""
    return DatabaseManager().connection
