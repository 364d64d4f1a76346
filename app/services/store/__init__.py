"""
Document Store Factory

Provides a single entry point for obtaining the process-wide document
store. Handlers receive the store through FastAPI dependencies, so tests
swap in an InMemoryDocumentStore without touching module state.

Environment Switching:
    - MONGODB_URI or DB_USER/DB_SECRET set → MongoDocumentStore
    - ENV_MODE=staging/production → MongoDocumentStore
    - ENV_MODE=development otherwise → InMemoryDocumentStore
"""

import logging
from functools import lru_cache

from app.core.config import get_settings
from app.services.store.base import (
    BaseDocumentStore,
    DeleteResult,
    InsertResult,
    UpdateResult,
    parse_object_id,
    serialize_doc,
    serialize_value,
)
from app.services.store.mock import InMemoryDocumentStore
from app.services.store.mongo import MongoDocumentStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_document_store() -> BaseDocumentStore:
    """
    Get the configured document store instance (cached singleton).

    Raises:
        ValueError: If real services are required but no MongoDB URI is set
    """
    settings = get_settings()
    uri = settings.resolved_mongodb_uri

    if uri:
        logger.info(f"Document Store: Using MongoDocumentStore ({settings.env_mode.value} mode)")
        return MongoDocumentStore(uri, settings.database_name)

    if settings.use_real_services:
        raise ValueError(
            "MONGODB_URI (or DB_USER and DB_SECRET) is required outside development mode."
        )

    logger.info("Document Store: Using InMemoryDocumentStore (development mode)")
    return InMemoryDocumentStore()


def reset_document_store() -> None:
    """Clear the cached store instance."""
    get_document_store.cache_clear()
    logger.debug("Document store cache cleared")


__all__ = [
    "get_document_store",
    "reset_document_store",
    "BaseDocumentStore",
    "InMemoryDocumentStore",
    "MongoDocumentStore",
    "InsertResult",
    "UpdateResult",
    "DeleteResult",
    "parse_object_id",
    "serialize_doc",
    "serialize_value",
]
