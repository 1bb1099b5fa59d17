import logging
import sqlite3
from typing import List, Optional

from catalog.database import connection
from catalog.errors import NotFoundError, StoreError
from catalog.models import Author

logger = logging.getLogger(__name__)


class AuthorService:
    """CRUD operations on authors. Every call reads from or writes to the store."""

    # ------------------------- Queries ------------------------- #
    def list_authors(self) -> List[Author]:
        try:
            with connection() as conn:
                rows = conn.execute("SELECT id, name FROM authors ORDER BY id").fetchall()
        except sqlite3.Error as e:
            logger.exception("Error fetching authors")
            raise StoreError("Failed to fetch authors") from e
        return [Author.from_dict(dict(row)) for row in rows]

    def find_author(self, author_id: int) -> Optional[Author]:
        """Look up one author. Store errors propagate as ``sqlite3.Error``."""
        with connection() as conn:
            row = conn.execute("SELECT id, name FROM authors WHERE id = ?", (author_id,)).fetchone()
        return Author.from_dict(dict(row)) if row else None

    # ------------------------- Mutations ------------------------- #
    def add_author(self, name: str) -> Author:
        try:
            with connection() as conn:
                cursor = conn.execute("INSERT INTO authors (name) VALUES (?)", (name,))
                conn.commit()
        except sqlite3.Error as e:
            logger.exception("Error adding author")
            raise StoreError("Failed to add author") from e
        author = Author(id=cursor.lastrowid, name=name)
        logger.info("Created author %s", author.id)
        return author

    def update_author(self, author_id: int, name: str) -> None:
        try:
            if not self.find_author(author_id):
                # Known quirk kept for client compatibility: the message names a book.
                raise NotFoundError("Book does not exist")
            with connection() as conn:
                conn.execute("UPDATE authors SET name = ? WHERE id = ?", (name, author_id))
                conn.commit()
        except sqlite3.Error as e:
            logger.exception("Error updating author %s", author_id)
            raise StoreError("Failed to update author") from e

    def delete_author(self, author_id: int) -> None:
        """Delete an author. Books are neither cascaded nor checked here; the
        store's foreign key rejects the delete while books still reference it."""
        try:
            if not self.find_author(author_id):
                raise NotFoundError("Author does not exist")
            with connection() as conn:
                conn.execute("DELETE FROM authors WHERE id = ?", (author_id,))
                conn.commit()
        except sqlite3.Error as e:
            logger.exception("Error deleting author %s", author_id)
            raise StoreError("Failed to delete author") from e
