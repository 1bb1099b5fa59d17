import asyncio
import subprocess
import sys
from typing import Awaitable, Callable, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from catalog.config import settings
from catalog.logging_setup import setup_logging
from catalog.services.http_client import CatalogClient
from catalog.state import CatalogController
from catalog.ui_helpers import print_alert, print_authors, print_books, set_output_mode

APP_NAME = "Book Catalog CLI"

console = Console()

app = typer.Typer(help="Book catalog CLI")

_api_url: Optional[str] = None


def make_client() -> CatalogClient:
    """Build the API client for one CLI session."""
    return CatalogClient(base_url=_api_url or settings.api_url)


def run_session(action: Callable[[CatalogController], Awaitable[None]]) -> None:
    """Open a client, load both lists once, then run ``action`` on the controller."""

    async def runner() -> None:
        async with make_client() as client:
            controller = CatalogController(client, alert=print_alert)
            await controller.load()
            await action(controller)

    asyncio.run(runner())


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format: plain | json | rich (default: plain)",
    ),
    api_url: Optional[str] = typer.Option(
        None, "--api-url", help="Base URL of the catalog API",
    ),
):
    """Global CLI options."""
    global _api_url
    setup_logging()
    if output:
        set_output_mode(output)
    _api_url = api_url


# ------------------------- Listing ------------------------- #
@app.command("authors")
def cli_authors():
    """List all authors."""
    async def action(controller: CatalogController) -> None:
        print_authors(controller.state.authors)

    run_session(action)


@app.command("books")
def cli_books():
    """List all books with their authors."""
    async def action(controller: CatalogController) -> None:
        print_books(controller.state.books)

    run_session(action)


# ------------------------- Authors ------------------------- #
@app.command("add-author")
def cli_add_author(name: str):
    """Add an author."""
    async def action(controller: CatalogController) -> None:
        controller.set_author_form(name)
        await controller.submit_author()

    run_session(action)


@app.command("rename-author")
def cli_rename_author(author_id: int, name: str):
    """Rename an author; books by that author show the new name."""
    async def action(controller: CatalogController) -> None:
        if not any(a.id == author_id for a in controller.state.authors):
            print(f"Author #{author_id} not found.")
            return
        controller.edit_author(author_id, name)
        await controller.save_author(author_id)

    run_session(action)


@app.command("remove-author")
def cli_remove_author(author_id: int):
    """Remove an author."""
    async def action(controller: CatalogController) -> None:
        await controller.delete_author(author_id)

    run_session(action)


# ------------------------- Books ------------------------- #
@app.command("add-book")
def cli_add_book(title: str, author_id: int):
    """Add a book for an existing author."""
    async def action(controller: CatalogController) -> None:
        controller.set_book_form(title=title, author=author_id)
        await controller.submit_book()

    run_session(action)


@app.command("edit-book")
def cli_edit_book(
    book_id: int,
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    author_id: Optional[int] = typer.Option(None, "--author-id", "-a", help="New author id"),
):
    """Edit a book's title and/or author. Unset options keep the current value."""
    async def action(controller: CatalogController) -> None:
        controller.select_book(book_id)
        if controller.state.editing_book_id is None:
            print(f"Book #{book_id} not found.")
            return
        if title is not None:
            controller.set_book_form(title=title)
        if author_id is not None:
            controller.set_book_form(author=author_id)
        await controller.submit_book()

    run_session(action)


@app.command("remove-book")
def cli_remove_book(book_id: int):
    """Remove a book."""
    async def action(controller: CatalogController) -> None:
        await controller.delete_book(book_id)

    run_session(action)


# ------------------------- Interactive menu ------------------------- #
MENU_ITEMS = [
    ("1", "List authors"),
    ("2", "Add author"),
    ("3", "Rename author"),
    ("4", "Remove author"),
    ("5", "List books"),
    ("6", "Add book"),
    ("7", "Edit book"),
    ("8", "Remove book"),
    ("0", "Quit"),
]


def render_menu(controller: CatalogController) -> None:
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label in MENU_ITEMS:
        table.add_row(f"[reverse]{key}[/]", label)
    state = controller.state
    subtitle = f"{len(state.authors)} authors, {len(state.books)} books"
    console.print(Panel(table, title=APP_NAME, subtitle=subtitle, border_style="cyan", box=box.HEAVY, padding=(1, 2)))


async def run_menu(controller: CatalogController) -> None:
    """Interactive loop over a single controller, so local state persists between actions."""
    while True:
        render_menu(controller)
        choice = Prompt.ask("Choose an option", choices=[key for key, _ in MENU_ITEMS], default="1").strip()

        if choice == "1":
            print_authors(controller.state.authors)
        elif choice == "2":
            controller.set_author_form(Prompt.ask("Author name"))
            await controller.submit_author()
        elif choice == "3":
            author_id = IntPrompt.ask("Author id")
            controller.edit_author(author_id, Prompt.ask("New name"))
            await controller.save_author(author_id)
        elif choice == "4":
            await controller.delete_author(IntPrompt.ask("Author id"))
        elif choice == "5":
            print_books(controller.state.books, controller.state.editing_book_id)
        elif choice == "6":
            controller.cancel_book_editing()
            controller.set_book_form(title=Prompt.ask("Title"), author=IntPrompt.ask("Author id"))
            await controller.submit_book()
        elif choice == "7":
            controller.select_book(IntPrompt.ask("Book id"))
            form = controller.state.book_form
            if controller.state.editing_book_id is None:
                console.print("[yellow]No such book.[/]")
                continue
            controller.set_book_form(
                title=Prompt.ask("Title", default=form["title"]),
                author=IntPrompt.ask("Author id", default=form["author"]),
            )
            await controller.submit_book()
        elif choice == "8":
            await controller.delete_book(IntPrompt.ask("Book id"))
        elif choice == "0":
            console.print("[green]Goodbye![/]")
            break
        print()


@app.command("menu")
def cli_menu():
    """Interactive menu."""
    run_session(run_menu)


# ------------------------- Server ------------------------- #
@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
):
    """Run the catalog API with uvicorn."""
    host = host or settings.api_host
    port = port or settings.api_port
    print(f"Starting catalog API on http://{host}:{port}/")
    args = [
        sys.executable,
        "-m", "uvicorn",
        "catalog.api:app",
        "--host", host,
        "--port", str(port),
    ]
    if reload:
        args.append("--reload")
    try:
        subprocess.run(args, check=False)
    except FileNotFoundError:
        console.print("[bold red]Error:[/] `uvicorn` could not be started. Make sure it is installed.")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
