"""Client-side catalog state and the controller that keeps it in sync with the API.

The state is two independent lists (authors, books), an editing pointer for the
book form and two form buffers. All changes go through :func:`reduce`, so a
shell (the CLI, a test) only has to render ``controller.state``.

Server confirmations never trigger a refetch: after a successful mutation the
local lists are patched in place, which means a book's nested author is left as
it was when the book's author id changes.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from catalog.errors import ClientTransportError
from catalog.models import Author, Book
from catalog.services.http_client import CatalogClient

logger = logging.getLogger(__name__)

# Server-confirmed transitions
FETCH_OK = "FETCH_OK"
ADD_OK = "ADD_OK"
UPDATE_OK = "UPDATE_OK"
DELETE_OK = "DELETE_OK"
ERROR = "ERROR"

# Local-only transitions
EDIT_AUTHOR = "EDIT_AUTHOR"
SELECT_BOOK = "SELECT_BOOK"
CANCEL_EDIT = "CANCEL_EDIT"
SET_FORM = "SET_FORM"

AUTHOR = "author"
BOOK = "book"


def empty_author_form() -> Dict[str, Any]:
    return {"name": ""}


def empty_book_form() -> Dict[str, Any]:
    return {"title": "", "author": 0}


@dataclass(frozen=True)
class Action:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CatalogState:
    authors: List[Author] = field(default_factory=list)
    books: List[Book] = field(default_factory=list)
    editing_book_id: Optional[int] = None
    author_form: Dict[str, Any] = field(default_factory=empty_author_form)
    book_form: Dict[str, Any] = field(default_factory=empty_book_form)


def _rename_author(author: Author, name: str) -> Author:
    return Author(id=author.id, name=name)


def _patch_book(book: Book, **changes) -> Book:
    return Book(
        id=book.id,
        title=changes.get("title", book.title),
        author_id=changes.get("author_id", book.author_id),
        author=changes.get("author", book.author),
    )


def reduce(state: CatalogState, action: Action) -> CatalogState:
    """Return the state that follows ``action``. Never mutates ``state``."""
    p = action.payload

    if action.type == FETCH_OK:
        return replace(state, authors=list(p["authors"]), books=list(p["books"]))

    if action.type == ADD_OK:
        if p["entity"] == AUTHOR:
            return replace(state, authors=state.authors + [p["record"]], author_form=empty_author_form())
        return replace(state, books=state.books + [p["record"]], book_form=empty_book_form())

    if action.type == UPDATE_OK:
        if p["entity"] == AUTHOR:
            author_id, name = p["id"], p["name"]
            authors = [_rename_author(a, name) if a.id == author_id else a for a in state.authors]
            # Books carry a denormalized copy of their author.
            books = [
                _patch_book(b, author=_rename_author(b.author, name))
                if b.author is not None and b.author.id == author_id else b
                for b in state.books
            ]
            return replace(state, authors=authors, books=books)
        fields = p["fields"]
        books = [
            _patch_book(b, title=fields["title"], author_id=fields["authorId"]) if b.id == p["id"] else b
            for b in state.books
        ]
        return replace(state, books=books, editing_book_id=None, book_form=empty_book_form())

    if action.type == DELETE_OK:
        if p["entity"] == AUTHOR:
            return replace(state, authors=[a for a in state.authors if a.id != p["id"]])
        return replace(state, books=[b for b in state.books if b.id != p["id"]])

    if action.type == EDIT_AUTHOR:
        authors = [_rename_author(a, p["name"]) if a.id == p["id"] else a for a in state.authors]
        return replace(state, authors=authors)

    if action.type == SELECT_BOOK:
        book = next((b for b in state.books if b.id == p["id"]), None)
        if book is None:
            return state
        author = book.author.id if book.author is not None else book.author_id
        return replace(state, editing_book_id=book.id, book_form={"title": book.title, "author": author})

    if action.type == CANCEL_EDIT:
        return replace(state, editing_book_id=None, book_form=empty_book_form())

    if action.type == SET_FORM:
        if p["entity"] == AUTHOR:
            return replace(state, author_form={**state.author_form, **p["values"]})
        return replace(state, book_form={**state.book_form, **p["values"]})

    if action.type == ERROR:
        return state

    raise ValueError(f"Unknown action type: {action.type}")


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class CatalogController:
    """Drives a :class:`CatalogState` through the API client.

    ``alert`` receives every user-facing message (success or failure); the CLI
    prints it, tests collect it.
    """

    def __init__(self, client: CatalogClient, alert: Optional[Callable[[str], None]] = None) -> None:
        self.client = client
        self.alert = alert or print
        self.state = CatalogState()

    def dispatch(self, action: Action) -> CatalogState:
        self.state = reduce(self.state, action)
        return self.state

    async def _call(self, request: Awaitable[httpx.Response]) -> httpx.Response:
        """Await a client call and raise ClientTransportError unless it returned 2xx."""
        try:
            response = await request
        except httpx.RequestError as e:
            raise ClientTransportError(f"Could not reach the catalog API: {e}") from e
        if not response.is_success:
            raise ClientTransportError(
                f"Catalog API answered {response.status_code}",
                status_code=response.status_code,
                body=_response_body(response),
            )
        return response

    def _report(self, error: ClientTransportError, message: str) -> None:
        messages = error.field_messages
        if messages:
            self.alert("Validation failed:\n" + "\n".join(messages))
        else:
            self.alert(message)
        logger.error("%s: %s", message, error.message)
        self.dispatch(Action(ERROR, {"message": message}))

    # ------------------------- Loading ------------------------- #
    async def load(self) -> CatalogState:
        """Fetch both lists once. On failure the lists stay as they were."""
        try:
            books = await self._call(self.client.get_books())
            authors = await self._call(self.client.get_authors())
        except ClientTransportError as e:
            logger.error("Error fetching data: %s", e.message)
            return self.state
        return self.dispatch(Action(FETCH_OK, {
            "authors": [Author.from_dict(a) for a in authors.json()],
            "books": [Book.from_dict(b) for b in books.json()],
        }))

    # ------------------------- Authors ------------------------- #
    def set_author_form(self, name: str) -> None:
        self.dispatch(Action(SET_FORM, {"entity": AUTHOR, "values": {"name": name}}))

    async def submit_author(self) -> None:
        name = self.state.author_form["name"]
        try:
            response = await self._call(self.client.add_author({"name": name}))
        except ClientTransportError as e:
            self._report(e, "Failed to add author")
            return
        record = Author.from_dict(response.json()["author"])
        self.dispatch(Action(ADD_OK, {"entity": AUTHOR, "record": record}))
        self.alert(f"Successfully added: {name}")

    def edit_author(self, author_id: int, name: str) -> None:
        """Stage a new name locally; nothing is sent until :meth:`save_author`."""
        self.dispatch(Action(EDIT_AUTHOR, {"id": author_id, "name": name}))

    async def save_author(self, author_id: int) -> None:
        author = next((a for a in self.state.authors if a.id == author_id), None)
        if author is None:
            return
        try:
            await self._call(self.client.update_author(author_id, {"name": author.name}))
        except ClientTransportError as e:
            self._report(e, "Failed to save author")
            return
        self.dispatch(Action(UPDATE_OK, {"entity": AUTHOR, "id": author_id, "name": author.name}))
        self.alert(f"Successfully updated: {author.name}")

    async def delete_author(self, author_id: int) -> None:
        try:
            await self._call(self.client.delete_author(author_id))
        except ClientTransportError as e:
            self._report(e, "Failed to delete author")
            return
        self.dispatch(Action(DELETE_OK, {"entity": AUTHOR, "id": author_id}))

    # ------------------------- Books ------------------------- #
    def set_book_form(self, **values: Any) -> None:
        self.dispatch(Action(SET_FORM, {"entity": BOOK, "values": values}))

    def select_book(self, book_id: int) -> None:
        self.dispatch(Action(SELECT_BOOK, {"id": book_id}))

    def cancel_book_editing(self) -> None:
        self.dispatch(Action(CANCEL_EDIT))

    def _book_form_data(self) -> Dict[str, Any]:
        form = self.state.book_form
        author = form["author"]
        try:
            author = int(author)
        except (TypeError, ValueError):
            # Let the server reject it with a field message.
            pass
        return {"title": form["title"], "authorId": author}

    async def submit_book(self) -> None:
        """Create a book, or update the one being edited."""
        data = self._book_form_data()
        editing_id = self.state.editing_book_id

        if editing_id is not None:
            try:
                await self._call(self.client.update_book(editing_id, data))
            except ClientTransportError as e:
                self._report(e, "Failed to edit book")
                return
            self.dispatch(Action(UPDATE_OK, {"entity": BOOK, "id": editing_id, "fields": data}))
            self.alert(f"Successfully edited: {data['title']}")
            return

        try:
            response = await self._call(self.client.create_book(data))
        except ClientTransportError as e:
            self._report(e, "Failed to add book")
            return
        record = Book.from_dict(response.json()["book"])
        self.dispatch(Action(ADD_OK, {"entity": BOOK, "record": record}))
        self.alert(f"Successfully added: {data['title']}")

    async def delete_book(self, book_id: int) -> None:
        try:
            await self._call(self.client.delete_book(book_id))
        except ClientTransportError as e:
            self._report(e, "Failed to delete book")
            return
        self.dispatch(Action(DELETE_OK, {"entity": BOOK, "id": book_id}))
