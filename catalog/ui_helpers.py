import json
import os
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from catalog.models import Author, Book

# Environment variable that controls CLI output mode.
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "CATALOG_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_authors(authors: List[Author]) -> None:
    """Print the author list in the current output mode.
    - plain: '#id name' lines, or 'No authors found'
    - json: JSON array of {id, name}
    - rich: Rich table
    """
    mode = get_output_mode()

    if not authors:
        print("No authors found")
        return

    if mode == "json":
        print(json.dumps([a.to_dict() for a in authors], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Authors", header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        for a in authors:
            table.add_row(str(a.id), escape(a.name))
        _console.print(table)
    else:
        for a in authors:
            print(f"#{a.id} {a.name}")


def _author_name(book: Book) -> str:
    return book.author.name if book.author is not None else "Unknown author"


def print_books(books: List[Book], editing_book_id: int | None = None) -> None:
    """Print the book list; the book being edited is marked in plain and rich modes."""
    mode = get_output_mode()

    if not books:
        print("No books found")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        for b in books:
            title = escape(b.title)
            if b.id == editing_book_id:
                title = f"[bold yellow]{title} (editing)[/]"
            table.add_row(str(b.id), title, escape(_author_name(b)))
        _console.print(table)
    else:
        for b in books:
            marker = " (editing)" if b.id == editing_book_id else ""
            print(f"#{b.id} Book: {b.title} - Author: {_author_name(b)}{marker}")


def print_alert(message: str) -> None:
    """Show a user-facing message; multi-line validation failures get a panel in rich mode."""
    if get_output_mode() == "rich":
        style = "red" if message.startswith(("Failed", "Validation failed")) else "green"
        _console.print(Panel.fit(escape(message), border_style=style))
    else:
        print(message)
