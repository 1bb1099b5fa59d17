import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from catalog.config import settings

logger = logging.getLogger(__name__)

# Tests point this at a temporary file before the first connection is made.
DATABASE_FILE = settings.db_file


def get_db_connection() -> sqlite3.Connection:
    """Open a connection to the SQLite catalog with foreign keys enforced."""
    conn = sqlite3.connect(DATABASE_FILE)
    conn.row_factory = sqlite3.Row
    # SQLite only enforces REFERENCES clauses when asked to, per connection.
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def connection() -> Iterator[sqlite3.Connection]:
    """Connection scoped to a ``with`` block; closed on exit, never committed implicitly."""
    conn = get_db_connection()
    try:
        yield conn
    finally:
        conn.close()


def create_tables() -> None:
    """Create the authors and books tables if they do not exist yet."""
    conn = get_db_connection()
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS authors (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL
            )
        """)
        # No ON DELETE action: deleting an author that still has books is rejected.
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                author_id INTEGER NOT NULL,
                FOREIGN KEY (author_id) REFERENCES authors(id)
            )
        """)
        conn.commit()
    finally:
        conn.close()


def check_connection() -> bool:
    """Run a trivial query; used by the health endpoint."""
    try:
        conn = get_db_connection()
        try:
            conn.execute("SELECT 1")
        finally:
            conn.close()
        return True
    except sqlite3.Error:
        logger.warning("Database health check failed", exc_info=True)
        return False


def initialize_database() -> None:
    """Make sure the schema exists."""
    create_tables()
    logger.debug("Database initialized at %s", DATABASE_FILE)
