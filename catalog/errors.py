"""Error taxonomy shared by the API, the services and the client side.

Server-side errors carry the HTTP status they map to and know how to render
their JSON body; the client-side error wraps whatever came back (or did not
come back) from the transport.

Request validation errors are raised by pydantic and rendered by the API.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base class for every error raised by the catalog."""

    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"message": self.message}


class NotFoundError(CatalogError):
    http_status = 404


class StoreError(CatalogError):
    """Unexpected persistence failure. The message is safe to show to clients;
    the underlying exception is kept as ``__cause__`` for the server log."""

    http_status = 500


class ClientTransportError(CatalogError):
    """The API could not be reached or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def field_messages(self) -> List[str]:
        """Validation messages from the response body, empty when there are none."""
        if not isinstance(self.body, dict):
            return []
        errors = self.body.get("errors") or []
        if not isinstance(errors, list):
            return []
        return [str(err.get("msg", "")) for err in errors if isinstance(err, dict)]
