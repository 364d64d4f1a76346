import pytest
from bson import ObjectId

from app.core.exceptions import InvalidArgument, StoreError
from app.services.store import InMemoryDocumentStore, parse_object_id, serialize_doc
from tests.conftest import run


@pytest.fixture
def store():
    return InMemoryDocumentStore()


def test_insert_assigns_object_id(store):
    result = run(store.insert_one("menu", {"name": "Soup"}))
    assert isinstance(result.inserted_id, ObjectId)
    assert run(store.find_one("menu", {"_id": result.inserted_id}))["name"] == "Soup"


def test_returned_documents_are_copies(store):
    run(store.insert_one("menu", {"name": "Soup", "tags": ["hot"]}))
    doc = run(store.find_one("menu", {"name": "Soup"}))
    doc["tags"].append("cold")
    assert run(store.find_one("menu", {"name": "Soup"}))["tags"] == ["hot"]


def test_in_filter_and_delete_many(store):
    ids = [run(store.insert_one("carts", {"n": i})).inserted_id for i in range(4)]
    result = run(store.delete_many("carts", {"_id": {"$in": ids[:2]}}))
    assert result.deleted_count == 2
    assert [doc["n"] for doc in run(store.find("carts"))] == [2, 3]


def test_update_without_match_does_not_insert(store):
    result = run(store.update_one("users", {"_id": ObjectId()}, {"$set": {"role": "admin"}}))
    assert (result.matched_count, result.upserted_id) == (0, None)
    assert run(store.find("users")) == []


def test_upsert_keeps_filter_id(store):
    oid = ObjectId()
    result = run(store.update_one("menu", {"_id": oid}, {"$set": {"name": "Stew"}}, upsert=True))
    assert result.upserted_id == oid
    assert run(store.find("menu")) == [{"_id": oid, "name": "Stew"}]


def test_unchanged_update_is_not_modified(store):
    run(store.insert_one("users", {"email": "a@b.test", "role": "admin"}))
    result = run(store.update_one("users", {"email": "a@b.test"}, {"$set": {"role": "admin"}}))
    assert (result.matched_count, result.modified_count) == (1, 0)


def test_lookup_unwind_group(store):
    soup = run(store.insert_one("menu", {"category": "soup", "price": 4})).inserted_id
    cake = run(store.insert_one("menu", {"category": "dessert", "price": 6})).inserted_id
    run(store.insert_one("payments", {"menuItems": [soup, cake]}))
    run(store.insert_one("payments", {"menuItems": [soup]}))
    run(store.insert_one("payments", {"menuItems": []}))

    rows = run(store.aggregate("payments", [
        {"$lookup": {"from": "menu", "localField": "menuItems", "foreignField": "_id", "as": "items"}},
        {"$unwind": "$items"},
        {"$group": {"_id": "$items.category", "count": {"$sum": 1}, "total": {"$sum": "$items.price"}}},
    ]))

    assert sorted(rows, key=lambda r: r["_id"]) == [
        {"_id": "dessert", "count": 1, "total": 6},
        {"_id": "soup", "count": 2, "total": 8},
    ]


def test_unsupported_stage(store):
    with pytest.raises(StoreError):
        run(store.aggregate("payments", [{"$facet": {}}]))


def test_fail_on(store):
    store.fail_on.add(("find", "menu"))
    with pytest.raises(StoreError):
        run(store.find("menu"))
    assert run(store.find("reviews")) == []


def test_parse_object_id():
    oid = ObjectId()
    assert parse_object_id(str(oid)) == oid
    with pytest.raises(InvalidArgument):
        parse_object_id("123")
    with pytest.raises(InvalidArgument):
        parse_object_id(None)


def test_serialize_doc():
    oid = ObjectId()
    assert serialize_doc({"_id": oid, "items": [oid]}) == {"_id": str(oid), "items": [str(oid)]}
    assert serialize_doc(None) is None
