import pytest
from bson import ObjectId

from tests.conftest import run

PIZZA = {"name": "Margherita", "price": 14.5, "category": "pizza", "recipe": "Tomato, mozzarella"}


@pytest.fixture
def pizza_id(store):
    return str(run(store.insert_one("menu", dict(PIZZA))).inserted_id)


def test_menu_is_public(client, pizza_id):
    response = client.get("/menu")
    assert response.status_code == 200
    assert response.json() == [{"_id": pizza_id, **PIZZA}]


def test_get_menu_item(client, pizza_id):
    response = client.get(f"/dashboard/update-menu/{pizza_id}")
    assert response.json()["name"] == "Margherita"


def test_get_missing_menu_item_returns_null(client):
    response = client.get(f"/dashboard/update-menu/{ObjectId()}")
    assert response.status_code == 200
    assert response.json() is None


def test_get_menu_item_with_malformed_id(client):
    assert client.get("/dashboard/update-menu/xyz").status_code == 400


def test_create_menu_item(client, store, admin_headers):
    item = {"name": "Caesar", "price": 8.99, "category": "salad", "image": "https://img/caesar.png"}
    response = client.post("/menu", json=item, headers=admin_headers)
    assert response.status_code == 200

    stored = run(store.find_one("menu", {"_id": ObjectId(response.json()["insertedId"])}))
    assert stored["image"] == "https://img/caesar.png"
    assert stored["category"] == "salad"


def test_update_menu_item_sets_editable_fields_only(client, store, pizza_id, admin_headers):
    run(store.update_one("menu", {"_id": ObjectId(pizza_id)}, {"$set": {"image": "keep.png"}}))
    update = {"name": "Margherita XL", "price": 18, "category": "pizza", "recipe": "More cheese", "image": "new.png"}

    response = client.put(f"/dashboard/update-menu/{pizza_id}", json=update, headers=admin_headers)
    body = response.json()
    assert body["matchedCount"] == 1
    assert body["upsertedCount"] == 0

    stored = run(store.find_one("menu", {"_id": ObjectId(pizza_id)}))
    assert stored["name"] == "Margherita XL"
    assert stored["price"] == 18
    assert stored["image"] == "keep.png"


def test_update_unknown_menu_item_upserts(client, store, admin_headers):
    new_id = str(ObjectId())
    response = client.put(f"/dashboard/update-menu/{new_id}", json=PIZZA, headers=admin_headers)
    body = response.json()
    assert body["upsertedCount"] == 1
    assert body["upsertedId"] == new_id

    stored = run(store.find_one("menu", {"_id": ObjectId(new_id)}))
    assert stored["name"] == "Margherita"


def test_delete_menu_item(client, store, pizza_id, admin_headers):
    response = client.delete(f"/menu/{pizza_id}", headers=admin_headers)
    assert response.json()["deletedCount"] == 1
    assert run(store.find("menu")) == []


def test_reviews_are_public(client, store):
    run(store.insert_one("reviews", {"name": "Sam", "rating": 5, "details": "Great pizza"}))
    response = client.get("/reviews")
    assert response.status_code == 200
    assert [r["rating"] for r in response.json()] == [5]
