from __future__ import annotations


class Author:
    """A single author in the catalog."""

    def __init__(self, id: int, name: str) -> None:
        self.id = id
        self.name = name

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} (#{self.id})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Author):
            return NotImplemented
        return self.id == other.id and self.name == other.name

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @staticmethod
    def from_dict(data: dict) -> "Author":
        return Author(id=int(data["id"]), name=data["name"])


class Book:
    """A single book; always references exactly one author by id."""

    def __init__(self, id: int, title: str, author_id: int, author: Author | None = None) -> None:
        self.id = id
        self.title = title
        self.author_id = author_id
        self.author = author

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        by = self.author.name if self.author else f"author #{self.author_id}"
        return f"{self.title} by {by} (#{self.id})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "authorId": self.author_id,
            "author": self.author.to_dict() if self.author else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        author_data = data.get("author")
        return Book(
            id=int(data["id"]),
            title=data["title"],
            author_id=int(data["authorId"]),
            author=Author.from_dict(author_data) if author_data else None,
        )

    @staticmethod
    def from_row(row) -> "Book":
        """Build a Book from a books LEFT JOIN authors row."""
        author = None
        if row["author_name"] is not None:
            author = Author(id=row["author_id"], name=row["author_name"])
        return Book(id=row["id"], title=row["title"], author_id=row["author_id"], author=author)
