"""
Persistence layer for book records.

``BookStore`` is the interface the request handlers consume; ``MongoBookStore``
implements it over an async MongoDB client. Driver errors never leave this
module: they are translated into the exceptions of ``library_api.errors``.
"""

import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from library_api.errors import DuplicateKey, InvalidIdentifier, NotFound, StoreFailure
from library_api.models import Book, BookFields
from library_api.validation import FIELD_ALIASES, merge_book

logger = structlog.get_logger(__name__)

SEARCH_FIELDS = ("title", "author", "genre")


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision MongoDB stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class BookStore(ABC):
    """Storage operations required by the catalog handlers."""

    async def connect(self) -> None:
        """Prepare the store for use."""

    async def close(self) -> None:
        """Release store resources."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the store is reachable."""

    @abstractmethod
    async def insert(self, book: BookFields) -> Book:
        """Store a new book and return it with id and timestamps."""

    @abstractmethod
    async def find_page(self, skip: int, limit: int, sort_key: str = "title") -> Tuple[List[Book], int]:
        """Return up to ``limit`` books from offset ``skip`` and the total count."""

    @abstractmethod
    async def find_by_id(self, book_id: str) -> Book:
        """Return one book or raise NotFound / InvalidIdentifier."""

    @abstractmethod
    async def update_by_id(self, book_id: str, changes: Mapping[str, Any]) -> Book:
        """Merge ``changes`` onto a stored book, re-validate and persist."""

    @abstractmethod
    async def delete_by_id(self, book_id: str) -> None:
        """Remove one book or raise NotFound / InvalidIdentifier."""

    @abstractmethod
    async def find_by_pattern(self, fields: Sequence[str], term: str, limit: int) -> List[Book]:
        """Return books where any of ``fields`` contains ``term``, ignoring case."""


def parse_object_id(book_id: str) -> ObjectId:
    """Convert a path identifier to an ObjectId or raise InvalidIdentifier."""
    try:
        return ObjectId(book_id)
    except (InvalidId, TypeError) as e:
        raise InvalidIdentifier(f"Invalid book ID: {book_id}") from e


def document_to_book(document: Dict[str, Any]) -> Book:
    """Convert a MongoDB document to a Book."""
    document = dict(document)
    document["id"] = str(document.pop("_id"))
    return Book.model_validate(document)


@contextmanager
def translate_errors(operation: str, **context):
    """Re-raise driver errors as catalog errors."""
    try:
        yield
    except DuplicateKeyError as e:
        key_pattern = (e.details or {}).get("keyPattern") or {"isbn": 1}
        field = next(iter(key_pattern))
        logger.warning("Duplicate key rejected", operation=operation, field=field, **context)
        raise DuplicateKey(field) from e
    except PyMongoError as e:
        logger.error("Database operation failed", operation=operation, error=str(e), **context)
        raise StoreFailure(f"{operation} failed") from e


class MongoBookStore(BookStore):
    """
    Async MongoDB store for book records.
    Handles connection, indexing, and CRUD operations.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str = "books"):
        """
        Initialize the MongoDB store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Database used when the URL names none
            collection_name: Name of the books collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and ensure indexes."""
        try:
            with translate_errors("connect"):
                self.client = AsyncIOMotorClient(self.connection_url, tz_aware=True)
                self.database = self.client.get_default_database(self.database_name)
                self.collection = self.database[self.collection_name]

                # Test connection
                await self.client.admin.command("ping")
                logger.info("Successfully connected to MongoDB",
                            database=self.database.name,
                            collection=self.collection_name)

                await self._create_indexes()
        except StoreFailure:
            await self.close()
            raise

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        # ISBN uniqueness is enforced here, not in application code
        await self.collection.create_index("isbn", unique=True)
        await self.collection.create_index("title")
        logger.info("Successfully created MongoDB indexes")

    async def ping(self) -> bool:
        try:
            await self.database.command("ping")
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False

    async def insert(self, book: BookFields) -> Book:
        """
        Insert a new book.

        Args:
            book: Validated book fields

        Returns:
            Stored Book with id and timestamps

        Raises:
            DuplicateKey: If the ISBN is already taken
            StoreFailure: On any other database error
        """
        now = utc_now()
        document = book.model_dump(by_alias=True)
        document["createdAt"] = now
        document["updatedAt"] = now

        with translate_errors("insert", isbn=book.isbn):
            result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id

        logger.debug("Successfully inserted book", book_id=str(result.inserted_id), isbn=book.isbn)
        return document_to_book(document)

    async def find_page(self, skip: int, limit: int, sort_key: str = "title") -> Tuple[List[Book], int]:
        """
        Get one page of books sorted ascending by ``sort_key``.

        Returns:
            Tuple of (books on the page, total number of books)
        """
        with translate_errors("find_page", skip=skip, limit=limit):
            cursor = self.collection.find({}).sort(sort_key, ASCENDING).skip(skip).limit(limit)
            documents = await cursor.to_list(length=limit)
            total = await self.collection.count_documents({})

        return [document_to_book(document) for document in documents], total

    async def find_by_id(self, book_id: str) -> Book:
        object_id = parse_object_id(book_id)
        with translate_errors("find_by_id", book_id=book_id):
            document = await self.collection.find_one({"_id": object_id})
        if document is None:
            raise NotFound(f"Book {book_id} not found")
        return document_to_book(document)

    async def update_by_id(self, book_id: str, changes: Mapping[str, Any]) -> Book:
        """
        Merge a partial payload onto a stored book.

        The merged document is validated before anything is written, so a
        rejected update leaves the stored record untouched.

        Raises:
            InvalidIdentifier: If ``book_id`` is not an ObjectId
            NotFound: If no book has that id
            ValidationFailure: If the merged document is invalid
            DuplicateKey: If the new ISBN is already taken
            StoreFailure: On any other database error
        """
        object_id = parse_object_id(book_id)
        with translate_errors("update_by_id", book_id=book_id):
            existing = await self.collection.find_one({"_id": object_id})
            if existing is None:
                raise NotFound(f"Book {book_id} not found")

            merged = merge_book(existing, changes).model_dump(by_alias=True)
            # Only the fields the client sent; the rest keep their stored values
            update = {
                alias: merged[alias]
                for alias in {FIELD_ALIASES[key] for key in changes if key in FIELD_ALIASES}
            }
            update["updatedAt"] = utc_now()

            document = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        if document is None:
            # Deleted between the read and the write
            raise NotFound(f"Book {book_id} not found")

        logger.debug("Successfully updated book", book_id=book_id)
        return document_to_book(document)

    async def delete_by_id(self, book_id: str) -> None:
        object_id = parse_object_id(book_id)
        with translate_errors("delete_by_id", book_id=book_id):
            result = await self.collection.delete_one({"_id": object_id})
        if result.deleted_count == 0:
            raise NotFound(f"Book {book_id} not found")
        logger.debug("Successfully deleted book", book_id=book_id)

    async def find_by_pattern(self, fields: Sequence[str], term: str, limit: int) -> List[Book]:
        """
        Case-insensitive substring search across several fields.

        ``term`` is matched literally; regex metacharacters are escaped.
        """
        pattern = re.escape(term)
        query = {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in fields]}

        with translate_errors("find_by_pattern", term=term):
            cursor = self.collection.find(query).limit(limit)
            documents = await cursor.to_list(length=limit)

        return [document_to_book(document) for document in documents]
