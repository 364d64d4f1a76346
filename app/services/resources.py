"""
Resource Handlers

One handler per entity (users, menu items, reviews, cart items), each a thin
mapping from a route to a single document-store operation. Handlers take the
store as a constructor argument; routes obtain them through the providers
in app.dependencies.

Documents are returned serialized (ObjectIds as strings). Store
acknowledgements are returned as their result objects and rendered by the
route.
"""

import logging
from typing import Any, Optional, Union

from app.services.store import (
    BaseDocumentStore,
    DeleteResult,
    InsertResult,
    UpdateResult,
    parse_object_id,
    serialize_doc,
)

logger = logging.getLogger(__name__)

USERS = "users"
MENU = "menu"
REVIEWS = "reviews"
CARTS = "carts"
PAYMENTS = "payments"

ADMIN_ROLE = "admin"


class ResourceHandler:
    """Generic create/read/update/delete over one collection."""

    collection: str = ""

    def __init__(self, store: BaseDocumentStore):
        self.store = store

    async def create(self, document: dict) -> InsertResult:
        return await self.store.insert_one(self.collection, document)

    async def list(self, filter: Optional[dict] = None) -> list[dict]:
        docs = await self.store.find(self.collection, filter)
        return [serialize_doc(doc) for doc in docs]

    async def get(self, id: str) -> Optional[dict]:
        """Return the document with this id, or None if there is none."""
        doc = await self.store.find_one(self.collection, {"_id": parse_object_id(id)})
        return serialize_doc(doc)

    async def update(self, id: str, patch: dict, upsert: bool = False) -> UpdateResult:
        return await self.store.update_one(
            self.collection,
            {"_id": parse_object_id(id)},
            {"$set": patch},
            upsert=upsert,
        )

    async def delete(self, id: str) -> DeleteResult:
        return await self.store.delete_one(self.collection, {"_id": parse_object_id(id)})


class UserHandler(ResourceHandler):
    collection = USERS

    async def find_by_email(self, email: str) -> Optional[dict]:
        return await self.store.find_one(self.collection, {"email": email})

    async def is_admin(self, email: str) -> bool:
        user = await self.find_by_email(email)
        return bool(user) and user.get("role") == ADMIN_ROLE

    async def register(self, user: dict) -> Union[InsertResult, dict[str, Any]]:
        """
        Insert the user unless one with the same email already exists.

        Check-then-insert is two separate store calls; two concurrent
        registrations of the same email can both pass the check.
        """
        existing = await self.find_by_email(user["email"])
        if existing:
            logger.debug(f"Registration skipped, {user['email']} already exists")
            return {"message": "user already exists."}

        result = await self.create(user)
        logger.info(f"Registered user {user['email']}")
        return result

    async def promote(self, id: str) -> UpdateResult:
        result = await self.update(id, {"role": ADMIN_ROLE})
        logger.info(f"Promoted user {id} to admin (matched={result.matched_count})")
        return result


class MenuHandler(ResourceHandler):
    collection = MENU

    EDITABLE_FIELDS = ("name", "price", "category", "recipe")

    async def replace_fields(self, id: str, item: dict) -> UpdateResult:
        """Upsert the editable fields; an unknown id creates the item."""
        patch = {field: item.get(field) for field in self.EDITABLE_FIELDS}
        return await self.update(id, patch, upsert=True)


class ReviewHandler(ResourceHandler):
    collection = REVIEWS


class CartHandler(ResourceHandler):
    collection = CARTS

    async def list_for(self, email: str) -> list[dict]:
        return await self.list({"email": email})
