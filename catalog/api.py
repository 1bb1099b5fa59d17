import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, FastAPI, Path, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator, model_validator

from catalog import database
from catalog.config import settings
from catalog.errors import CatalogError, NotFoundError
from catalog.logging_setup import setup_logging
from catalog.services.author_service import AuthorService
from catalog.services.book_service import BookService
from catalog.validators import TextValidator, positive_id

logger = logging.getLogger(__name__)

author_service = AuthorService()
book_service = BookService(author_service)


# --- Models ---
class _RequestBody(BaseModel):
    @model_validator(mode="before")
    @classmethod
    def _object_only(cls, data: Any) -> Any:
        # A JSON body that is not an object validates like an empty one.
        return data if isinstance(data, dict) else {}


class AuthorIn(_RequestBody):
    name: str = Field(default=None, validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> str:
        return TextValidator.clean(value, "Name")


class BookIn(_RequestBody):
    title: str = Field(default=None, validate_default=True)
    authorId: Annotated[int, positive_id("Select a valid author")] = Field(default=None, validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, value: Any) -> str:
        return TextValidator.clean(value, "Title")


EntityId = Annotated[int, Path(), positive_id("ID must be a positive integer")]
EditedBookId = Annotated[int, Path(), positive_id("Enter a valid book ID")]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    database.initialize_database()
    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield
    logger.info("%s shutting down", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handlers ---
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Map domain errors to their status and a ``{message}`` body."""
    if isinstance(exc, NotFoundError):
        logger.info("%s %s: %s", request.method, request.url.path, exc.message)
    elif exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.to_response())
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


# express-style locations: path parameters are "params".
_ERROR_LOCATIONS = {"path": "params", "query": "query", "body": "body"}


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Flatten pydantic errors into one ``{type, value, msg, path, location}`` entry per message."""
    errors = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        source = loc.pop(0) if loc else "body"
        messages = (err.get("ctx") or {}).get("messages") or [err.get("msg", "Invalid request")]
        for msg in messages:
            errors.append({
                "type": "field",
                "value": jsonable_encoder(err.get("input")),
                "msg": msg,
                "path": ".".join(str(part) for part in loc),
                "location": _ERROR_LOCATIONS.get(source, source),
            })
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, [e["msg"] for e in errors])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation errors", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Catch-all; the client never sees internal details."""
    logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


# --- Health ---
@app.get("/health")
def health() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "db": database.check_connection(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# --- Authors ---
authors_router = APIRouter(prefix="/authors", tags=["authors"])


@authors_router.get("")
def get_all_authors() -> List[Dict[str, Any]]:
    """List every author."""
    return [a.to_dict() for a in author_service.list_authors()]


@authors_router.post("", status_code=status.HTTP_201_CREATED)
def add_author(payload: AuthorIn):
    author = author_service.add_author(payload.name)
    return {"message": "Successfully created author", "author": author.to_dict()}


@authors_router.put("/{id}")
def update_author(id: EntityId, payload: AuthorIn):
    author_service.update_author(id, payload.name)
    return {"message": "Successfully updated author"}


@authors_router.delete("/{id}")
def delete_author(id: EntityId):
    author_service.delete_author(id)
    return {"message": "Successfully deleted author"}


# --- Books ---
books_router = APIRouter(prefix="/books", tags=["books"])


@books_router.get("")
def get_all_books() -> List[Dict[str, Any]]:
    """List every book with its author inline."""
    return [b.to_dict() for b in book_service.list_books()]


@books_router.post("", status_code=status.HTTP_201_CREATED)
def add_book(payload: BookIn):
    book = book_service.add_book(payload.title, payload.authorId)
    return {"message": "Successfully created book", "book": book.to_dict()}


@books_router.put("/{id}")
def update_book(id: EditedBookId, payload: BookIn):
    book_service.update_book(id, payload.title, payload.authorId)
    return {"message": "Successfully updated book"}


@books_router.delete("/{id}")
def delete_book(id: EntityId):
    book_service.delete_book(id)
    return {"message": "Successfully deleted book"}


app.include_router(authors_router)
app.include_router(books_router)
