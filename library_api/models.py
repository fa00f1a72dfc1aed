"""
API models and schemas for the Library Management API.

Field names are snake_case in Python and camelCase on the wire
(``published_year`` <-> ``publishedYear``).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class BookFields(CamelModel):
    """Client-editable book fields, as accepted by the validator."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "str_strip_whitespace": True,
        "extra": "ignore",
    }

    title: str = Field(..., min_length=1, description="The book title")
    author: str = Field(..., min_length=1, description="The book author")
    genre: str = Field(..., min_length=1, description="Book genre/category")
    published_year: int = Field(..., ge=0, description="Year of publication")
    isbn: str = Field(..., min_length=1, description="Unique ISBN number")
    stock_count: int = Field(..., ge=0, description="Copies in stock")


class Book(BookFields):
    """Stored book record, as returned by the API."""

    id: str = Field(..., description="The auto-generated id of the book")
    created_at: Optional[datetime] = Field(None, description="The date the book was added")
    updated_at: Optional[datetime] = Field(None, description="The date the book was last updated")


class BookListResponse(CamelModel):
    """Response model for book list with pagination."""
    page: int = Field(..., description="Current page number")
    total_pages: int = Field(..., description="Total number of pages")
    total_books: int = Field(..., description="Total number of books")
    books: List[Book] = Field(..., description="Books on this page")


class MessageResponse(BaseModel):
    """Confirmation message response model."""
    message: str = Field(..., description="Confirmation message")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")


class HealthResponse(CamelModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
