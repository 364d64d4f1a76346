"""
In-Memory Document Store Implementation

Dict-backed stand-in for MongoDB used in development mode
(ENV_MODE=development without a MongoDB URI) and by the test suite.

Behavior:
    - Documents get an ObjectId ``_id`` on insert, like MongoDB
    - Filters: field equality (dotted paths, array membership) and
      the $in / $ne operators
    - Updates: $set, with upsert
    - Aggregation stages: $match, $lookup, $unwind, $group ($sum)
    - ``fail_on`` lets a test make chosen operations raise StoreError
"""

import copy
import logging
from typing import Any, Iterable, Optional

from bson import ObjectId

from app.core.exceptions import StoreError
from app.services.store.base import (
    BaseDocumentStore,
    DeleteResult,
    InsertResult,
    UpdateResult,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _get_path(doc: Any, path: str) -> Any:
    """Resolve a dotted field path, returning _MISSING when absent."""
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _field_matches(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$in":
                candidates = value if isinstance(value, list) else [value]
                if not any(c in operand for c in candidates):
                    return False
            elif op == "$eq":
                if not _field_matches(value, operand):
                    return False
            elif op == "$ne":
                if _field_matches(value, operand):
                    return False
            else:
                raise StoreError(f"unsupported query operator {op}")
        return True

    if value is _MISSING:
        return condition is None
    if isinstance(value, list) and not isinstance(condition, list):
        return condition in value
    return value == condition


def matches(doc: dict, filter: Optional[dict]) -> bool:
    """Return True if the document satisfies every clause of the filter."""
    for key, condition in (filter or {}).items():
        if not _field_matches(_get_path(doc, key), condition):
            return False
    return True


def _evaluate(doc: dict, expression: Any) -> Any:
    """Evaluate a "$field.path" reference or return a literal."""
    if isinstance(expression, str) and expression.startswith("$"):
        value = _get_path(doc, expression[1:])
        return None if value is _MISSING else value
    return expression


class InMemoryDocumentStore(BaseDocumentStore):
    """
    In-memory implementation of the document store.

    Attributes:
        fail_on: Set of (operation, collection) pairs that raise StoreError,
            e.g. {("delete_many", "carts")}

    Example:
        >>> store = InMemoryDocumentStore()
        >>> await store.insert_one("menu", {"name": "Pizza", "price": 9.5})
        >>> await store.find("menu")
    """

    def __init__(self, seed: Optional[dict[str, Iterable[dict]]] = None):
        self._collections: dict[str, list[dict]] = {}
        self.fail_on: set[tuple[str, str]] = set()

        for name, docs in (seed or {}).items():
            for doc in docs:
                self._insert(name, doc)

        logger.info("InMemoryDocumentStore initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    def _collection(self, name: str) -> list[dict]:
        return self._collections.setdefault(name, [])

    def _check_failure(self, operation: str, collection: str) -> None:
        if (operation, collection) in self.fail_on:
            logger.debug(f"Memory: simulated failure of {operation} on {collection}")
            raise StoreError(f"{operation} on {collection} failed")

    def _insert(self, collection: str, document: dict) -> ObjectId:
        doc = copy.deepcopy(document)
        doc.setdefault("_id", ObjectId())
        self._collection(collection).append(doc)
        return doc["_id"]

    @staticmethod
    def _apply_update(doc: dict, update: dict) -> bool:
        modified = False
        for op, fields in update.items():
            if op != "$set":
                raise StoreError(f"unsupported update operator {op}")
            for key, value in fields.items():
                if doc.get(key, _MISSING) != value:
                    doc[key] = copy.deepcopy(value)
                    modified = True
        return modified

    async def ping(self) -> bool:
        return True

    async def insert_one(self, collection: str, document: dict) -> InsertResult:
        self._check_failure("insert_one", collection)
        inserted_id = self._insert(collection, document)
        # MongoDB drivers stamp the generated _id onto the caller's document
        document.setdefault("_id", inserted_id)
        return InsertResult(inserted_id=inserted_id)

    async def find(self, collection: str, filter: Optional[dict] = None) -> list[dict]:
        self._check_failure("find", collection)
        return [
            copy.deepcopy(doc)
            for doc in self._collection(collection)
            if matches(doc, filter)
        ]

    async def find_one(self, collection: str, filter: dict) -> Optional[dict]:
        self._check_failure("find_one", collection)
        for doc in self._collection(collection):
            if matches(doc, filter):
                return copy.deepcopy(doc)
        return None

    async def update_one(
        self,
        collection: str,
        filter: dict,
        update: dict,
        upsert: bool = False,
    ) -> UpdateResult:
        self._check_failure("update_one", collection)
        for doc in self._collection(collection):
            if matches(doc, filter):
                modified = self._apply_update(doc, update)
                return UpdateResult(matched_count=1, modified_count=int(modified))

        if not upsert:
            return UpdateResult()

        new_doc = {
            key: value
            for key, value in filter.items()
            if not key.startswith("$") and not isinstance(value, dict)
        }
        self._apply_update(new_doc, update)
        upserted_id = self._insert(collection, new_doc)
        return UpdateResult(upserted_id=upserted_id)

    async def update_many(self, collection: str, filter: dict, update: dict) -> UpdateResult:
        self._check_failure("update_many", collection)
        matched = modified = 0
        for doc in self._collection(collection):
            if matches(doc, filter):
                matched += 1
                modified += int(self._apply_update(doc, update))
        return UpdateResult(matched_count=matched, modified_count=modified)

    async def delete_one(self, collection: str, filter: dict) -> DeleteResult:
        self._check_failure("delete_one", collection)
        docs = self._collection(collection)
        for index, doc in enumerate(docs):
            if matches(doc, filter):
                del docs[index]
                return DeleteResult(deleted_count=1)
        return DeleteResult()

    async def delete_many(self, collection: str, filter: dict) -> DeleteResult:
        self._check_failure("delete_many", collection)
        docs = self._collection(collection)
        kept = [doc for doc in docs if not matches(doc, filter)]
        deleted = len(docs) - len(kept)
        self._collections[collection] = kept
        return DeleteResult(deleted_count=deleted)

    async def estimated_document_count(self, collection: str) -> int:
        self._check_failure("estimated_document_count", collection)
        return len(self._collection(collection))

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    async def aggregate(self, collection: str, pipeline: list[dict]) -> list[dict]:
        self._check_failure("aggregate", collection)
        docs = [copy.deepcopy(doc) for doc in self._collection(collection)]

        for stage in pipeline:
            if len(stage) != 1:
                raise StoreError("each pipeline stage must have exactly one operator")
            (name, params), = stage.items()
            if name == "$match":
                docs = [doc for doc in docs if matches(doc, params)]
            elif name == "$lookup":
                docs = self._lookup(docs, params)
            elif name == "$unwind":
                docs = self._unwind(docs, params)
            elif name == "$group":
                docs = self._group(docs, params)
            else:
                raise StoreError(f"unsupported pipeline stage {name}")

        return docs

    def _lookup(self, docs: list[dict], params: dict) -> list[dict]:
        foreign = self._collection(params["from"])
        for doc in docs:
            local = _get_path(doc, params["localField"])
            if local is _MISSING:
                local = None
            keys = local if isinstance(local, list) else [local]
            doc[params["as"]] = [
                copy.deepcopy(other)
                for other in foreign
                if _get_path(other, params["foreignField"]) in keys
            ]
        return docs

    @staticmethod
    def _unwind(docs: list[dict], params: Any) -> list[dict]:
        path = params["path"] if isinstance(params, dict) else params
        field = path.lstrip("$")
        unwound = []
        for doc in docs:
            values = doc.get(field)
            if values is None or values == []:
                continue
            if not isinstance(values, list):
                values = [values]
            for value in values:
                unwound.append({**doc, field: value})
        return unwound

    @staticmethod
    def _group(docs: list[dict], params: dict) -> list[dict]:
        groups: dict[Any, dict] = {}
        accumulators = {k: v for k, v in params.items() if k != "_id"}

        for doc in docs:
            key = _evaluate(doc, params["_id"])
            group = groups.get(key)
            if group is None:
                group = {"_id": key, **{name: 0 for name in accumulators}}
                groups[key] = group
            for name, accumulator in accumulators.items():
                (op, expression), = accumulator.items()
                if op != "$sum":
                    raise StoreError(f"unsupported accumulator {op}")
                value = _evaluate(doc, expression)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    group[name] += value

        return list(groups.values())
