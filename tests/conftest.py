"""
Pytest configuration and shared fixtures.
"""

import re

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from library_api.database import BookStore, parse_object_id, utc_now
from library_api.errors import DuplicateKey, NotFound
from library_api.main import app, get_book_store
from library_api.models import Book
from library_api.validation import merge_book


class InMemoryBookStore(BookStore):
    """BookStore keeping documents in a dict, shaped like MongoDB documents."""

    def __init__(self):
        self.documents = {}
        self.calls = []

    async def ping(self):
        self.calls.append("ping")
        return True

    def _to_book(self, document):
        document = dict(document)
        document["id"] = str(document.pop("_id"))
        return Book.model_validate(document)

    def _check_isbn(self, isbn, exclude=None):
        for object_id, document in self.documents.items():
            if object_id != exclude and document["isbn"] == isbn:
                raise DuplicateKey("isbn")

    async def insert(self, book):
        self.calls.append("insert")
        self._check_isbn(book.isbn)
        now = utc_now()
        document = book.model_dump(by_alias=True)
        document.update({"_id": ObjectId(), "createdAt": now, "updatedAt": now})
        self.documents[document["_id"]] = document
        return self._to_book(document)

    async def find_page(self, skip, limit, sort_key="title"):
        self.calls.append("find_page")
        ordered = sorted(self.documents.values(), key=lambda d: d[sort_key])
        return [self._to_book(d) for d in ordered[skip:skip + limit]], len(ordered)

    async def find_by_id(self, book_id):
        self.calls.append("find_by_id")
        object_id = parse_object_id(book_id)
        if object_id not in self.documents:
            raise NotFound(book_id)
        return self._to_book(self.documents[object_id])

    async def update_by_id(self, book_id, changes):
        self.calls.append("update_by_id")
        object_id = parse_object_id(book_id)
        if object_id not in self.documents:
            raise NotFound(book_id)
        merged = merge_book(self.documents[object_id], changes)
        self._check_isbn(merged.isbn, exclude=object_id)
        self.documents[object_id].update(merged.model_dump(by_alias=True), updatedAt=utc_now())
        return self._to_book(self.documents[object_id])

    async def delete_by_id(self, book_id):
        self.calls.append("delete_by_id")
        object_id = parse_object_id(book_id)
        if self.documents.pop(object_id, None) is None:
            raise NotFound(book_id)

    async def find_by_pattern(self, fields, term, limit):
        self.calls.append("find_by_pattern")
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        matches = [
            d for d in self.documents.values()
            if any(pattern.search(d[field]) for field in fields)
        ]
        return [self._to_book(d) for d in matches[:limit]]


@pytest.fixture
def book_store():
    """Create an empty in-memory store."""
    return InMemoryBookStore()


@pytest.fixture
def client(book_store):
    """Create test client backed by the in-memory store."""
    app.dependency_overrides[get_book_store] = lambda: book_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_book_payload():
    """Create sample book payload for testing."""
    return {
        "title": "Dune",
        "author": "Frank Herbert",
        "genre": "Sci-Fi",
        "publishedYear": 1965,
        "isbn": "9780441013593",
        "stockCount": 3,
    }
