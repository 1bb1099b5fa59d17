"""Book Catalog - services package

- Author and book services backed by the SQLite store
- HTTP client for the catalog API
"""
