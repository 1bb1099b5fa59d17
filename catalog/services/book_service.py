import logging
import sqlite3
from typing import List, Optional

from catalog.database import connection
from catalog.errors import NotFoundError, StoreError
from catalog.models import Book
from catalog.services.author_service import AuthorService

logger = logging.getLogger(__name__)

_SELECT_BOOKS = """
    SELECT b.id, b.title, b.author_id, a.name AS author_name
    FROM books b
    LEFT JOIN authors a ON a.id = b.author_id
"""


class BookService:
    """CRUD operations on books, each book joined with its author on reads."""

    def __init__(self, authors: Optional[AuthorService] = None) -> None:
        self.authors = authors or AuthorService()

    # ------------------------- Queries ------------------------- #
    def list_books(self) -> List[Book]:
        try:
            with connection() as conn:
                rows = conn.execute(_SELECT_BOOKS + " ORDER BY b.id").fetchall()
        except sqlite3.Error as e:
            logger.exception("Error fetching books")
            raise StoreError("Failed to fetch books") from e
        return [Book.from_row(row) for row in rows]

    def find_book(self, book_id: int) -> Optional[Book]:
        with connection() as conn:
            row = conn.execute(_SELECT_BOOKS + " WHERE b.id = ?", (book_id,)).fetchone()
        return Book.from_row(row) if row else None

    # ------------------------- Mutations ------------------------- #
    def add_book(self, title: str, author_id: int) -> Book:
        """Create a book for an existing author. The author read happens strictly
        before the insert."""
        try:
            author = self.authors.find_author(author_id)
            if not author:
                raise NotFoundError("Author does not exist")
            with connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO books (title, author_id) VALUES (?, ?)", (title, author_id)
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.exception("Error adding book")
            raise StoreError("Failed to add book") from e
        book = Book(id=cursor.lastrowid, title=title, author_id=author_id, author=author)
        logger.info("Created book %s for author %s", book.id, author_id)
        return book

    def update_book(self, book_id: int, title: str, author_id: int) -> None:
        """Overwrite title and author id. Unlike add_book the new author is not
        looked up first; a dangling id is rejected by the store instead."""
        try:
            if not self.find_book(book_id):
                raise NotFoundError("Book does not exist")
            with connection() as conn:
                conn.execute(
                    "UPDATE books SET title = ?, author_id = ? WHERE id = ?",
                    (title, author_id, book_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.exception("Error updating book %s", book_id)
            raise StoreError("Failed to update book") from e

    def delete_book(self, book_id: int) -> None:
        try:
            if not self.find_book(book_id):
                raise NotFoundError("Book does not exist")
            with connection() as conn:
                conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
                conn.commit()
        except sqlite3.Error as e:
            logger.exception("Error deleting book %s", book_id)
            raise StoreError("Failed to delete book") from e
