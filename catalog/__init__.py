"""Book Catalog - core application package

This package contains:
- HTTP API (api.py)
- Request validation (validators.py)
- Domain objects (models.py)
- Database layer (database.py)
- Client-side state and controller (state.py)
- CLI interface (main.py)
"""

__version__ = "1.0.0"
