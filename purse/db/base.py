"""
Base repository module with connection management and schema initialization.

Provides the foundation for all database operations in the Purse ledger.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from purse.config import (
    DB_TIMEOUT,
    DEFAULT_DB_PATH,
    SYSTEM_CATEGORY_ID,
    SYSTEM_CATEGORY_NAME,
)
from purse.exceptions import StoreFailure

from .models import format_timestamp

logger = logging.getLogger(__name__)


class ConnectionScope(threading.local):
    """
    Connection shared by every repository bound to this scope while a unit
    of work is open on the current thread.
    """

    conn: Optional[sqlite3.Connection] = None


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class BaseRepository:
    """
    Base repository class with SQLite connection management.

    Every call opens a short-lived connection, commits on success and rolls
    back on error. Repositories constructed with the same ConnectionScope
    join a single connection while ``transaction()`` is open, so compound
    mutations spanning several repositories commit or roll back together.
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        init_schema: bool = True,
        scope: Optional[ConnectionScope] = None,
    ):
        """
        Initialize the base repository.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/purse.db
            init_schema: Whether to initialize the schema on startup
            scope: Connection scope shared with sibling repositories
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._scope = scope or ConnectionScope()
        self._ensure_db_directory()
        if init_schema:
            self._init_schema()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, str.casefold, deterministic=True)
        # Enable foreign keys
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections with proper error handling."""
        if self._scope.conn is not None:
            # Inside a unit of work: the outer scope commits or rolls back
            with self._joined() as conn:
                yield conn
            return

        conn = None
        try:
            conn = self._connect()
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise StoreFailure(f"Database error: {e}") from e
        except Exception:
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    @contextmanager
    def _joined(self):
        """Yield the scope's open connection, reporting sqlite errors as StoreFailure."""
        try:
            yield self._scope.conn
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}", exc_info=True)
            raise StoreFailure(f"Database error: {e}") from e

    @contextmanager
    def transaction(self):
        """
        Open a unit of work shared by all repositories in this scope.

        Nested calls join the outermost transaction.
        """
        if self._scope.conn is not None:
            with self._joined() as conn:
                yield conn
            return

        with self._get_connection() as conn:
            self._scope.conn = conn
            try:
                yield conn
            finally:
                self._scope.conn = None

    def _init_schema(self):
        """Initialize the ledger schema and the reserved system category."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL CHECK(length(user_id) > 0),
                    name TEXT NOT NULL,
                    currency TEXT NOT NULL,
                    color TEXT NOT NULL,
                    icon TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    deleted_at TEXT
                )
            """)

            # user_id is NULL only for the system category
            conn.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT,
                    name TEXT NOT NULL,
                    color TEXT NOT NULL,
                    icon TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    deleted_at TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS tags (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL CHECK(length(user_id) > 0),
                    name TEXT NOT NULL,
                    color TEXT NOT NULL,
                    icon TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    deleted_at TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    kind INTEGER NOT NULL CHECK(kind IN (1, 2, 3)),
                    amount REAL NOT NULL CHECK(amount >= 0),
                    to_account_id INTEGER NOT NULL REFERENCES accounts(id),
                    from_account_id INTEGER REFERENCES accounts(id),
                    category_id INTEGER NOT NULL REFERENCES categories(id),
                    date TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    location TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    deleted_at TEXT,
                    CHECK(
                        (kind = 3 AND from_account_id IS NOT NULL
                            AND from_account_id <> to_account_id)
                        OR (kind <> 3 AND from_account_id IS NULL)
                    )
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS entry_tags (
                    entry_id INTEGER NOT NULL
                        REFERENCES entries(id) ON DELETE CASCADE,
                    tag_id INTEGER NOT NULL REFERENCES tags(id),
                    PRIMARY KEY (entry_id, tag_id)
                )
            """)

            self._create_indexes(conn)

            conn.execute(
                """
                INSERT OR IGNORE INTO categories
                (id, user_id, name, color, icon, created_at)
                VALUES (?, NULL, ?, '#000000', 'shield', ?)
                """,
                (
                    SYSTEM_CATEGORY_ID,
                    SYSTEM_CATEGORY_NAME,
                    format_timestamp(utc_now()),
                ),
            )

            logger.debug("Ledger schema initialized successfully")

    def _create_indexes(self, conn):
        """Create database indexes for query performance."""
        indexes = [
            ("idx_accounts_user_id", "accounts", "user_id"),
            ("idx_categories_user_id", "categories", "user_id"),
            ("idx_tags_user_id", "tags", "user_id"),
            ("idx_entries_to_account", "entries", "to_account_id, date, kind"),
            ("idx_entries_from_account", "entries", "from_account_id, date"),
            ("idx_entries_category", "entries", "category_id"),
            ("idx_entries_date", "entries", "date"),
            ("idx_entry_tags_tag_id", "entry_tags", "tag_id"),
        ]

        for index_name, table, columns in indexes:
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS {index_name}
                ON {table}({columns})
            """)
