"""
Error taxonomy for the catalog service and its HTTP status mapping.

The validator and the persistence layer raise these exceptions; the
application translates them to responses through ``map_error`` only.
"""

from typing import Dict, Optional, Tuple, Type

from fastapi import status


class CatalogError(Exception):
    """Base class for all catalog errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationFailure(CatalogError):
    """A book payload is missing a field or carries a malformed one."""


class DuplicateKey(CatalogError):
    """A unique field collides with an existing book."""

    def __init__(self, field: str = "isbn"):
        super().__init__(f"{field.upper()} must be unique")
        self.field = field


class NotFound(CatalogError):
    """No book exists with the requested identifier."""


class InvalidIdentifier(CatalogError):
    """The identifier is not in the store's id format."""


class BadRequest(CatalogError):
    """A required request parameter is missing."""


class StoreFailure(CatalogError):
    """Any other persistence-layer failure."""


INTERNAL_ERROR_MESSAGE = "Internal server error"

# Exception type -> (status code, message). A ``None`` message means the
# exception's own message is sent.
ERROR_RESPONSES: Dict[Type[CatalogError], Tuple[int, Optional[str]]] = {
    ValidationFailure: (status.HTTP_400_BAD_REQUEST, None),
    DuplicateKey: (status.HTTP_400_BAD_REQUEST, None),
    NotFound: (status.HTTP_404_NOT_FOUND, "Book not found"),
    InvalidIdentifier: (status.HTTP_400_BAD_REQUEST, "Invalid book ID"),
    BadRequest: (status.HTTP_400_BAD_REQUEST, None),
    StoreFailure: (status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE),
}


def map_error(exc: CatalogError) -> Tuple[int, str]:
    """
    Translate a catalog error into an HTTP status code and client message.

    Args:
        exc: Error raised by the validator, a handler or the store

    Returns:
        Tuple of (status code, message)
    """
    for error_type in type(exc).__mro__:
        if error_type in ERROR_RESPONSES:
            status_code, message = ERROR_RESPONSES[error_type]
            return status_code, message if message is not None else exc.message
    return status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
