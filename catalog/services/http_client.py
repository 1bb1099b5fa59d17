from typing import Any, Dict, Optional

import httpx

from catalog.config import settings


class CatalogClient:
    """Thin async wrapper over the catalog HTTP API.

    One method per API operation. Each returns the raw ``httpx.Response`` so the
    caller decides what a status code means. There is no retry or caching, and
    timeouts are httpx defaults.
    """

    def __init__(self, base_url: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = base_url or settings.api_url
        self._client = httpx.AsyncClient(base_url=self.base_url, transport=transport)

    # ------------------------- Books ------------------------- #
    async def create_book(self, data: Dict[str, Any]) -> httpx.Response:
        return await self._client.post("/books", json=data)

    async def get_books(self) -> httpx.Response:
        return await self._client.get("/books")

    async def update_book(self, book_id: int, data: Dict[str, Any]) -> httpx.Response:
        return await self._client.put(f"/books/{book_id}", json=data)

    async def delete_book(self, book_id: int) -> httpx.Response:
        return await self._client.delete(f"/books/{book_id}")

    # ------------------------- Authors ------------------------- #
    async def add_author(self, data: Dict[str, Any]) -> httpx.Response:
        return await self._client.post("/authors", json=data)

    async def get_authors(self) -> httpx.Response:
        return await self._client.get("/authors")

    async def update_author(self, author_id: int, data: Dict[str, Any]) -> httpx.Response:
        return await self._client.put(f"/authors/{author_id}", json=data)

    async def delete_author(self, author_id: int) -> httpx.Response:
        return await self._client.delete(f"/authors/{author_id}")

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
