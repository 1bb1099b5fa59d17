from datetime import datetime, timedelta

import pytest

from catalog import api


def _add_author(client, name="Alice"):
    response = client.post("/authors", json={"name": name})
    assert response.status_code == 201
    return response.json()["author"]


def _add_book(client, title, author_id):
    response = client.post("/books", json={"title": title, "authorId": author_id})
    assert response.status_code == 201
    return response.json()["book"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["db"] is True
    stamp = datetime.fromisoformat(response.json()["timestamp"])
    assert stamp.utcoffset() == timedelta(0)


def test_cors_is_open(client):
    response = client.get("/authors", headers={"Origin": "http://example.com"})
    assert response.headers["access-control-allow-origin"] == "*"


# ------------------------- Authors ------------------------- #
def test_get_authors_empty(client):
    response = client.get("/authors")
    assert response.status_code == 200
    assert response.json() == []


def test_add_author(client):
    response = client.post("/authors", json={"name": "  Alice  "})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Successfully created author"
    assert body["author"]["name"] == "Alice"
    assert body["author"]["id"] > 0

    listed = client.get("/authors").json()
    assert listed == [body["author"]]


def test_add_author_escapes_html(client):
    author = _add_author(client, "<Ann>")
    assert author["name"] == "&lt;Ann&gt;"


@pytest.mark.parametrize("payload", [
    {"name": "Al"},
    {"name": "x" * 251},
    {"name": 12345},
    {"name": ""},
    {},
])
def test_add_author_invalid(client, payload):
    response = client.post("/authors", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation errors"
    assert body["errors"] and all("msg" in e for e in body["errors"])
    assert client.get("/authors").json() == []


def test_add_author_malformed_json(client):
    response = client.post("/authors", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation errors"


def test_update_author(client):
    author = _add_author(client)
    response = client.put(f"/authors/{author['id']}", json={"name": "Alicia"})
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully updated author"}
    assert client.get("/authors").json() == [{"id": author["id"], "name": "Alicia"}]


def test_update_author_id_with_leading_zeros(client):
    author = _add_author(client)
    response = client.put(f"/authors/00{author['id']}", json={"name": "Alicia"})
    assert response.status_code == 200
    assert client.get("/authors").json() == [{"id": author["id"], "name": "Alicia"}]


def test_update_author_error_entries(client):
    response = client.put("/authors/abc", json={})
    assert response.status_code == 400
    assert response.json()["errors"] == [
        {"type": "field", "value": "abc", "msg": "ID must be a positive integer", "path": "id", "location": "params"},
        {"type": "field", "value": None, "msg": "Name must be a string", "path": "name", "location": "body"},
        {"type": "field", "value": None, "msg": "Name is required", "path": "name", "location": "body"},
        {"type": "field", "value": None, "msg": "Name must be between 3 and 250 characters",
         "path": "name", "location": "body"},
    ]


def test_update_missing_author(client):
    response = client.put("/authors/999", json={"name": "Alicia"})
    assert response.status_code == 404
    assert response.json() == {"message": "Book does not exist"}


def test_update_author_invalid_name_leaves_record(client):
    author = _add_author(client)
    response = client.put(f"/authors/{author['id']}", json={"name": "Al"})
    assert response.status_code == 400
    assert client.get("/authors").json() == [author]


def test_delete_author(client):
    author = _add_author(client)
    response = client.delete(f"/authors/{author['id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully deleted author"}

    response = client.delete(f"/authors/{author['id']}")
    assert response.status_code == 404
    assert response.json() == {"message": "Author does not exist"}


def test_delete_author_with_books_fails_generically(client):
    author = _add_author(client)
    _add_book(client, "Dune", author["id"])

    response = client.delete(f"/authors/{author['id']}")
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to delete author"}
    assert len(client.get("/books").json()) == 1


# ------------------------- Books ------------------------- #
def test_add_book_nests_author(client):
    author = _add_author(client)
    response = client.post("/books", json={"title": "Dune", "authorId": author["id"]})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Successfully created book"
    assert body["book"]["title"] == "Dune"
    assert body["book"]["authorId"] == author["id"]
    assert body["book"]["author"] == author

    assert client.get("/books").json() == [body["book"]]


def test_add_book_accepts_string_author_id(client):
    author = _add_author(client)
    book = _add_book(client, "Dune", str(author["id"]))
    assert book["authorId"] == author["id"]


def test_add_book_unknown_author(client):
    response = client.post("/books", json={"title": "Dune", "authorId": 42})
    assert response.status_code == 404
    assert response.json() == {"message": "Author does not exist"}
    assert client.get("/books").json() == []


@pytest.mark.parametrize("payload, expected", [
    ({"title": "Du", "authorId": 1}, ["Title must be between 3 and 250 characters"]),
    ({"title": "Dune", "authorId": 0}, ["Select a valid author"]),
    ({"title": "Dune", "authorId": "abc"}, ["Select a valid author"]),
    ({"authorId": 1}, [
        "Title must be a string",
        "Title is required",
        "Title must be between 3 and 250 characters",
    ]),
    ({"title": 12345, "authorId": 1}, ["Title must be a string"]),
])
def test_add_book_invalid(client, payload, expected):
    _add_author(client)
    response = client.post("/books", json=payload)
    assert response.status_code == 400
    assert [e["msg"] for e in response.json()["errors"]] == expected


def test_update_book(client):
    alice = _add_author(client, "Alice")
    bob = _add_author(client, "Bob")
    book = _add_book(client, "Dune", alice["id"])

    response = client.put(f"/books/{book['id']}", json={"title": "Dune Messiah", "authorId": bob["id"]})
    assert response.status_code == 200
    assert response.json() == {"message": "Successfully updated book"}

    listed = client.get("/books").json()
    assert listed[0]["title"] == "Dune Messiah"
    assert listed[0]["author"] == bob


def test_update_missing_book(client):
    author = _add_author(client)
    response = client.put("/books/999", json={"title": "Dune", "authorId": author["id"]})
    assert response.status_code == 404
    assert response.json() == {"message": "Book does not exist"}


def test_update_book_invalid_path_id(client):
    response = client.put("/books/abc", json={"title": "Dune", "authorId": 1})
    assert response.status_code == 400
    assert response.json()["errors"][0]["msg"] == "Enter a valid book ID"


def test_update_book_to_unknown_author(client):
    author = _add_author(client)
    book = _add_book(client, "Dune", author["id"])

    response = client.put(f"/books/{book['id']}", json={"title": "Dune", "authorId": 999})
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to update book"}


@pytest.mark.parametrize("method, path", [
    ("put", "/authors/0"),
    ("put", "/authors/-3"),
    ("delete", "/authors/abc"),
    ("delete", "/authors/1.5"),
    ("put", "/books/0"),
    ("delete", "/books/x"),
])
def test_bad_path_ids_rejected_before_store(client, monkeypatch, method, path):
    def fail(*args, **kwargs):
        raise AssertionError("store must not be touched")

    for name in ("update_author", "delete_author"):
        monkeypatch.setattr(api.author_service, name, fail)
    for name in ("update_book", "delete_book"):
        monkeypatch.setattr(api.book_service, name, fail)

    kwargs = {"json": {"name": "Alice", "title": "Dune", "authorId": 1}} if method == "put" else {}
    response = getattr(client, method)(path, **kwargs)
    assert response.status_code == 400
    assert response.json()["message"] == "Validation errors"


@pytest.mark.parametrize("method, path", [
    ("put", "/authors/77"),
    ("delete", "/authors/77"),
    ("put", "/books/77"),
    ("delete", "/books/77"),
])
def test_unknown_ids_return_404(client, method, path):
    _add_author(client)
    kwargs = {"json": {"name": "Alice", "title": "Dune", "authorId": 1}} if method == "put" else {}
    response = getattr(client, method)(path, **kwargs)
    assert response.status_code == 404


def test_listing_is_idempotent(client):
    author = _add_author(client)
    _add_book(client, "Dune", author["id"])

    assert client.get("/authors").json() == client.get("/authors").json()
    assert client.get("/books").json() == client.get("/books").json()


def test_store_error_is_not_leaked(client, monkeypatch, tmp_path):
    from catalog import database

    monkeypatch.setattr(database, "DATABASE_FILE", str(tmp_path))
    response = client.get("/books")
    assert response.status_code == 500
    assert response.json() == {"message": "Failed to fetch books"}


def test_full_scenario(client):
    assert client.post("/authors", json={"name": "Al"}).status_code == 400

    response = client.post("/authors", json={"name": "Alice"})
    assert response.status_code == 201
    alice = response.json()["author"]
    assert alice["name"] == "Alice"

    response = client.post("/books", json={"title": "Dune", "authorId": alice["id"]})
    assert response.status_code == 201
    book = response.json()["book"]
    assert book["author"]["name"] == "Alice"

    assert client.put(f"/authors/{alice['id'] + 100}", json={"name": "Alicia"}).status_code == 404

    assert client.delete(f"/books/{book['id']}").status_code == 200
    assert client.delete(f"/books/{book['id']}").status_code == 404
