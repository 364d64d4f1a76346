"""
Document Store Abstract Base Class

Defines the interface contract for the document database behind the API.
Both MongoDocumentStore and InMemoryDocumentStore implement these methods,
so resource handlers, the payment orchestrator and the analytics aggregator
never know which one is active.

Design Pattern: Strategy Pattern
    - MongoDB in staging/production
    - In-memory store in development and tests
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from app.core.exceptions import InvalidArgument


# =============================================================================
# ACKNOWLEDGEMENTS
# =============================================================================

@dataclass
class InsertResult:
    """Acknowledgement of a single-document insert."""
    inserted_id: Any
    acknowledged: bool = True

    def to_dict(self) -> dict:
        return {
            "acknowledged": self.acknowledged,
            "insertedId": serialize_value(self.inserted_id),
        }


@dataclass
class UpdateResult:
    """Acknowledgement of an update (optionally upserting)."""
    matched_count: int = 0
    modified_count: int = 0
    upserted_id: Any = None
    acknowledged: bool = True

    @property
    def upserted_count(self) -> int:
        return 0 if self.upserted_id is None else 1

    def to_dict(self) -> dict:
        return {
            "acknowledged": self.acknowledged,
            "matchedCount": self.matched_count,
            "modifiedCount": self.modified_count,
            "upsertedCount": self.upserted_count,
            "upsertedId": serialize_value(self.upserted_id),
        }


@dataclass
class DeleteResult:
    """Acknowledgement of a delete."""
    deleted_count: int = 0
    acknowledged: bool = True

    def to_dict(self) -> dict:
        return {
            "acknowledged": self.acknowledged,
            "deletedCount": self.deleted_count,
        }


# =============================================================================
# IDENTIFIERS & SERIALIZATION
# =============================================================================

def parse_object_id(value: Any) -> ObjectId:
    """
    Convert a client-supplied identifier into an ObjectId.

    Raises:
        InvalidArgument: If the value is not a 24-hex identifier
    """
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        raise InvalidArgument(f"invalid id: {value!r}")
    try:
        return ObjectId(value)
    except InvalidId:
        raise InvalidArgument(f"invalid id: {value!r}")


def serialize_value(value: Any) -> Any:
    """Recursively convert ObjectIds and datetimes into JSON-friendly values."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    return serialize_value(doc)


# =============================================================================
# STORE CONTRACT
# =============================================================================

class BaseDocumentStore(ABC):
    """
    Abstract base class for document stores.

    Collections are addressed by name ("users", "menu", "reviews",
    "carts", "payments"). Filters, update documents and aggregation
    pipelines use MongoDB syntax.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the store backend name (e.g. "mongodb", "memory")."""
        pass

    async def connect(self) -> None:
        """Open connections. Called once at application startup."""

    async def close(self) -> None:
        """Release connections. Called once at application shutdown."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the store is reachable."""
        pass

    @abstractmethod
    async def insert_one(self, collection: str, document: dict) -> InsertResult:
        """Insert a document, assigning an ObjectId when ``_id`` is absent."""
        pass

    @abstractmethod
    async def find(self, collection: str, filter: Optional[dict] = None) -> list[dict]:
        """Return every document matching the filter."""
        pass

    @abstractmethod
    async def find_one(self, collection: str, filter: dict) -> Optional[dict]:
        """Return the first matching document, or None."""
        pass

    @abstractmethod
    async def update_one(
        self,
        collection: str,
        filter: dict,
        update: dict,
        upsert: bool = False,
    ) -> UpdateResult:
        """Apply an update document to the first match (or insert if upsert)."""
        pass

    @abstractmethod
    async def update_many(self, collection: str, filter: dict, update: dict) -> UpdateResult:
        pass

    @abstractmethod
    async def delete_one(self, collection: str, filter: dict) -> DeleteResult:
        pass

    @abstractmethod
    async def delete_many(self, collection: str, filter: dict) -> DeleteResult:
        pass

    @abstractmethod
    async def estimated_document_count(self, collection: str) -> int:
        """Fast, possibly approximate, document count."""
        pass

    @abstractmethod
    async def aggregate(self, collection: str, pipeline: list[dict]) -> list[dict]:
        """Run an aggregation pipeline and return all resulting documents."""
        pass
