import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from shelfwise.config import settings

logger = logging.getLogger(__name__)


class Database:
    """Opens SQLite connections for one database file.

    Outside a transaction every ``connection()`` block gets its own
    connection, committed and closed on exit. Inside ``transaction()`` all
    repositories share the transaction's connection, so a multi-step use case
    commits or rolls back as a unit.
    """

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or settings.database_file
        self._active: Optional[sqlite3.Connection] = None

    def get_db_connection(self) -> sqlite3.Connection:
        """Connect to the SQLite database with foreign keys enforced."""
        conn = sqlite3.connect(self.db_file)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if self._active is not None:
            yield self._active
            return
        conn = self.get_db_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block under one ``BEGIN IMMEDIATE`` transaction.

        IMMEDIATE takes the write lock up front, so a read-check-write sequence
        (capacity check then placement) cannot interleave with another writer.
        Nested calls join the outer transaction.
        """
        if self._active is not None:
            yield self._active
            return
        conn = self.get_db_connection()
        conn.isolation_level = None
        conn.execute("BEGIN IMMEDIATE")
        self._active = conn
        try:
            yield conn
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise
        finally:
            self._active = None
            conn.close()

    @property
    def in_transaction(self) -> bool:
        return self._active is not None

    def create_tables(self) -> None:
        """Create the tables if they do not exist yet."""
        with self.connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS bookcases (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id INTEGER,
                    location TEXT NOT NULL,
                    zone TEXT NOT NULL DEFAULT '',
                    zone_index TEXT NOT NULL DEFAULT '',
                    shelf_count INTEGER NOT NULL CHECK(shelf_count >= 1),
                    book_capacity_per_shelf INTEGER NOT NULL CHECK(book_capacity_per_shelf >= 1),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS shelves (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    bookcase_id INTEGER NOT NULL REFERENCES bookcases(id),
                    position INTEGER NOT NULL CHECK(position >= 1),
                    label TEXT NOT NULL,
                    book_capacity INTEGER NOT NULL CHECK(book_capacity >= 1),
                    UNIQUE (bookcase_id, position)
                );

                CREATE TABLE IF NOT EXISTS books (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    isbn TEXT NOT NULL,
                    authors TEXT,
                    publisher TEXT,
                    description TEXT,
                    published_date TEXT,
                    categories TEXT,
                    shelf_id INTEGER REFERENCES shelves(id),
                    availability_status TEXT NOT NULL DEFAULT 'AVAILABLE'
                        CHECK(availability_status IN ('AVAILABLE', 'CHECKED_OUT')),
                    created_at TEXT,
                    updated_at TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_books_shelf_id ON books(shelf_id);
                CREATE INDEX IF NOT EXISTS idx_books_title ON books(title COLLATE NOCASE);
                CREATE INDEX IF NOT EXISTS idx_shelves_bookcase_id ON shelves(bookcase_id);
                CREATE INDEX IF NOT EXISTS idx_bookcases_location ON bookcases(location COLLATE NOCASE);
            """)

    def initialize(self) -> None:
        """Make sure the database file's directory and tables exist."""
        directory = os.path.dirname(os.path.abspath(self.db_file))
        os.makedirs(directory, exist_ok=True)
        self.create_tables()
        logger.debug(f"Database ready at {self.db_file}")
