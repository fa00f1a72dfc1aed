"""
Tests for the error-to-status mapping.
"""

import pytest

from library_api.errors import (
    BadRequest, CatalogError, DuplicateKey, InvalidIdentifier, NotFound,
    StoreFailure, ValidationFailure, map_error
)


@pytest.mark.parametrize("exc,expected", [
    (ValidationFailure("Book validation failed: title: Field required"),
     (400, "Book validation failed: title: Field required")),
    (DuplicateKey("isbn"), (400, "ISBN must be unique")),
    (NotFound("Book 123 not found"), (404, "Book not found")),
    (InvalidIdentifier("Invalid book ID: 123"), (400, "Invalid book ID")),
    (BadRequest("Search query is required"), (400, "Search query is required")),
    (StoreFailure("insert failed"), (500, "Internal server error")),
])
def test_map_error(exc, expected):
    assert map_error(exc) == expected


def test_store_failure_detail_hidden():
    status_code, message = map_error(StoreFailure("connection refused at 10.0.0.5"))
    assert status_code == 500
    assert "10.0.0.5" not in message


def test_subclass_uses_parent_entry():
    class StaleIdentifier(InvalidIdentifier):
        pass

    assert map_error(StaleIdentifier("old")) == (400, "Invalid book ID")


def test_unmapped_catalog_error_is_server_error():
    assert map_error(CatalogError("unexpected")) == (500, "Internal server error")


def test_duplicate_key_names_field():
    exc = DuplicateKey("isbn")
    assert exc.field == "isbn"
    assert "ISBN" in exc.message
