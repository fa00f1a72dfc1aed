"""
FastAPI main application for the Library Management API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_api.config import config
from library_api.database import SEARCH_FIELDS, BookStore, MongoBookStore
from library_api.errors import (
    INTERNAL_ERROR_MESSAGE, BadRequest, CatalogError, StoreFailure, map_error
)
from library_api.models import (
    Book, BookListResponse, ErrorResponse, HealthResponse, MessageResponse
)
from library_api.pagination import PageRequest
from library_api.validation import validate_book
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

SEARCH_LIMIT = 10


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )
    logger.info("Starting Library Management API", port=config.port)

    store = MongoBookStore(
        connection_url=config.mongodb_uri,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection
    )
    try:
        await store.connect()
    except StoreFailure:
        logger.error("Failed to connect to database")
        raise
    app.state.book_store = store

    try:
        yield
    finally:
        logger.info("Shutting down Library Management API")
        app.state.book_store = None
        await store.close()


app = FastAPI(
    title=config.api_title,
    description=config.api_description,
    version=config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=config.cors_allow_credentials,
    allow_methods=config.cors_allow_methods,
    allow_headers=config.cors_allow_headers,
)


def get_book_store(request: Request) -> BookStore:
    """Dependency returning the store opened by the lifespan."""
    store = getattr(request.app.state, "book_store", None)
    if store is None:
        raise StoreFailure("Database service not available")
    return store


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump()
    )


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Handle errors raised by the validator, handlers and store."""
    status_code, message = map_error(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    else:
        logger.warning("Request rejected", path=request.url.path,
                       status_code=status_code, error=exc.message)
    return error_response(status_code, message)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors."""
    logger.warning("Malformed request", path=request.url.path, errors=str(exc.errors()))
    return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


@app.get("/", response_class=PlainTextResponse, tags=["Health"])
async def root():
    """Liveness check."""
    return "Library Management API is running"


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    store = getattr(request.app.state, "book_store", None)
    db_status = "healthy" if store is not None and await store.ping() else "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=config.api_version,
        database_status=db_status
    )


# Books endpoints
@app.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED, tags=["Books"])
async def create_book(
    payload: Dict[str, Any] = Body(...),
    store: BookStore = Depends(get_book_store)
):
    """
    Add a new book to the library.

    All of title, author, genre, publishedYear, isbn and stockCount are
    required; isbn must be unique.
    """
    book = validate_book(payload)
    created = await store.insert(book)
    logger.info("Book created", book_id=created.id, isbn=created.isbn)
    return created


@app.get("/books", response_model=BookListResponse, tags=["Books"])
async def list_books(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    store: BookStore = Depends(get_book_store)
):
    """
    Get a list of books sorted by title, with pagination.

    - **page**: Page number (default 1)
    - **limit**: Number of books per page (default 10)
    """
    page_request = PageRequest.from_query(page, limit)
    books, total = await store.find_page(page_request.skip, page_request.limit, sort_key="title")

    return BookListResponse(
        page=page_request.page,
        total_pages=page_request.total_pages(total),
        total_books=total,
        books=books
    )


@app.get("/books/{book_id}", response_model=Book, tags=["Books"])
async def get_book(book_id: str, store: BookStore = Depends(get_book_store)):
    """Get a single book by ID."""
    return await store.find_by_id(book_id)


@app.put("/books/{book_id}", response_model=Book, tags=["Books"])
async def update_book(
    book_id: str,
    payload: Dict[str, Any] = Body(...),
    store: BookStore = Depends(get_book_store)
):
    """Update a book's information. Only the supplied fields change."""
    updated = await store.update_by_id(book_id, payload)
    logger.info("Book updated", book_id=book_id, fields=sorted(payload))
    return updated


@app.delete("/books/{book_id}", response_model=MessageResponse, tags=["Books"])
async def delete_book(book_id: str, store: BookStore = Depends(get_book_store)):
    """Delete a book from the library."""
    await store.delete_by_id(book_id)
    logger.info("Book deleted", book_id=book_id)
    return MessageResponse(message="Book deleted successfully")


@app.get("/search", response_model=List[Book], tags=["Books"])
async def search_books(
    query: Optional[str] = None,
    store: BookStore = Depends(get_book_store)
):
    """
    Search books by title, author, or genre.

    - **query**: Case-insensitive text matched anywhere in the three fields
    """
    if not query:
        raise BadRequest("Search query is required")
    return await store.find_by_pattern(SEARCH_FIELDS, query, SEARCH_LIMIT)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "library_api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
