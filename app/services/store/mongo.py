"""
MongoDB Document Store Implementation

Production implementation using PyMongo's native asyncio client.
Used when ENV_MODE=production or ENV_MODE=staging, or whenever a MongoDB
URI (or DB_USER/DB_SECRET) is configured.

One AsyncMongoClient is shared by the whole process; its connection pool
serves every concurrent request. Driver errors are re-raised as StoreError
so they reach the client as a JSON 500.
"""

import logging
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from app.core.exceptions import StoreError
from app.services.store.base import (
    BaseDocumentStore,
    DeleteResult,
    InsertResult,
    UpdateResult,
)

logger = logging.getLogger(__name__)


class MongoDocumentStore(BaseDocumentStore):
    """
    Document store backed by a MongoDB deployment.

    Example:
        >>> store = MongoDocumentStore("mongodb://localhost:27017", "bistroBoss")
        >>> await store.connect()
        >>> await store.find("menu")
    """

    def __init__(self, uri: str, database_name: str):
        self._client = AsyncMongoClient(
            uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
        )
        self._db = self._client[database_name]
        self._database_name = database_name

        logger.info(f"MongoDocumentStore initialized (database={database_name})")

    @property
    def provider_name(self) -> str:
        return "mongodb"

    async def connect(self) -> None:
        await self._client.admin.command("ping")
        logger.info("Pinged your deployment. Connected to MongoDB!")

    async def close(self) -> None:
        await self._client.close()
        logger.info("MongoDB client closed")

    async def ping(self) -> bool:
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB: Ping failed - {e}")
            return False

    async def insert_one(self, collection: str, document: dict) -> InsertResult:
        try:
            result = await self._db[collection].insert_one(document)
        except PyMongoError as e:
            logger.error(f"MongoDB: insert into {collection} failed - {e}")
            raise StoreError(f"insert into {collection} failed")
        return InsertResult(inserted_id=result.inserted_id, acknowledged=result.acknowledged)

    async def find(self, collection: str, filter: Optional[dict] = None) -> list[dict]:
        try:
            cursor = self._db[collection].find(filter or {})
            return await cursor.to_list()
        except PyMongoError as e:
            logger.error(f"MongoDB: find on {collection} failed - {e}")
            raise StoreError(f"query on {collection} failed")

    async def find_one(self, collection: str, filter: dict) -> Optional[dict]:
        try:
            return await self._db[collection].find_one(filter)
        except PyMongoError as e:
            logger.error(f"MongoDB: find_one on {collection} failed - {e}")
            raise StoreError(f"query on {collection} failed")

    async def update_one(
        self,
        collection: str,
        filter: dict,
        update: dict,
        upsert: bool = False,
    ) -> UpdateResult:
        try:
            result = await self._db[collection].update_one(filter, update, upsert=upsert)
        except PyMongoError as e:
            logger.error(f"MongoDB: update on {collection} failed - {e}")
            raise StoreError(f"update on {collection} failed")
        return UpdateResult(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            upserted_id=result.upserted_id,
            acknowledged=result.acknowledged,
        )

    async def update_many(self, collection: str, filter: dict, update: dict) -> UpdateResult:
        try:
            result = await self._db[collection].update_many(filter, update)
        except PyMongoError as e:
            logger.error(f"MongoDB: update on {collection} failed - {e}")
            raise StoreError(f"update on {collection} failed")
        return UpdateResult(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
            acknowledged=result.acknowledged,
        )

    async def delete_one(self, collection: str, filter: dict) -> DeleteResult:
        try:
            result = await self._db[collection].delete_one(filter)
        except PyMongoError as e:
            logger.error(f"MongoDB: delete on {collection} failed - {e}")
            raise StoreError(f"delete on {collection} failed")
        return DeleteResult(deleted_count=result.deleted_count, acknowledged=result.acknowledged)

    async def delete_many(self, collection: str, filter: dict) -> DeleteResult:
        try:
            result = await self._db[collection].delete_many(filter)
        except PyMongoError as e:
            logger.error(f"MongoDB: delete on {collection} failed - {e}")
            raise StoreError(f"delete on {collection} failed")
        return DeleteResult(deleted_count=result.deleted_count, acknowledged=result.acknowledged)

    async def estimated_document_count(self, collection: str) -> int:
        try:
            return await self._db[collection].estimated_document_count()
        except PyMongoError as e:
            logger.error(f"MongoDB: count on {collection} failed - {e}")
            raise StoreError(f"count on {collection} failed")

    async def aggregate(self, collection: str, pipeline: list[dict]) -> list[dict]:
        try:
            cursor = await self._db[collection].aggregate(pipeline)
            return await cursor.to_list()
        except PyMongoError as e:
            logger.error(f"MongoDB: aggregation on {collection} failed - {e}")
            raise StoreError(f"aggregation on {collection} failed")
