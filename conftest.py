import httpx
import pytest
from fastapi.testclient import TestClient

from catalog import database
from catalog.api import app
from catalog.services.author_service import AuthorService
from catalog.services.book_service import BookService
from catalog.services.http_client import CatalogClient


@pytest.fixture
def db_file(tmp_path, monkeypatch):
    # Fresh database file per test
    path = str(tmp_path / "catalog_test.db")
    monkeypatch.setattr(database, "DATABASE_FILE", path)
    database.initialize_database()
    return path


@pytest.fixture
def client(db_file):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authors(db_file):
    return AuthorService()


@pytest.fixture
def books(authors):
    return BookService(authors)


@pytest.fixture
def make_api_client(db_file):
    """Factory for CatalogClient instances that talk to the app in-process."""
    def factory() -> CatalogClient:
        return CatalogClient(base_url="http://testserver", transport=httpx.ASGITransport(app=app))
    return factory
