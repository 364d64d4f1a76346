import pytest
from bson import ObjectId

from app.services.analytics import AnalyticsAggregator
from app.services.store import InMemoryDocumentStore
from tests.conftest import USER_EMAIL, run


@pytest.fixture
def menu(store):
    items = {
        "margherita": {"_id": ObjectId(), "name": "Margherita", "price": 14.5, "category": "pizza"},
        "pepperoni": {"_id": ObjectId(), "name": "Pepperoni", "price": 16.0, "category": "pizza"},
        "caesar": {"_id": ObjectId(), "name": "Caesar", "price": 8.25, "category": "salad"},
        "tiramisu": {"_id": ObjectId(), "name": "Tiramisu", "price": 7.0, "category": "dessert"},
    }
    for item in items.values():
        run(store.insert_one("menu", item))
    return items


def test_order_stats_groups_by_category(client, store, menu, user_headers):
    payment = {
        "email": USER_EMAIL,
        "price": 38.75,
        "cartItems": [],
        "menuItems": [str(menu[k]["_id"]) for k in ("margherita", "pepperoni", "caesar")],
    }
    assert client.post("/payments", json=payment, headers=user_headers).status_code == 200

    response = client.get("/order-stats")
    assert response.status_code == 200
    stats = {row["category"]: row for row in response.json()}

    assert stats == {
        "pizza": {"category": "pizza", "count": 2, "totalPrice": 30.5},
        "salad": {"category": "salad", "count": 1, "totalPrice": 8.25},
    }
    assert "dessert" not in stats


def test_order_stats_joins_each_menu_item_once_per_payment(store, menu):
    # $lookup matches a menu document once however often its id repeats
    margherita = menu["margherita"]["_id"]
    run(store.insert_one("payments", {"price": 29, "menuItems": [margherita, margherita]}))
    run(store.insert_one("payments", {"price": 14.5, "menuItems": [margherita]}))

    stats = run(AnalyticsAggregator(store).order_stats())
    assert stats == [{"category": "pizza", "count": 2, "totalPrice": 29.0}]


def test_order_stats_without_payments_is_empty(client, menu):
    assert client.get("/order-stats").json() == []


def test_order_stats_aggregation_failure(client, store):
    store.fail_on.add(("aggregate", "payments"))
    response = client.get("/order-stats")
    assert response.status_code == 500
    assert response.text == "An error occurred during aggregation"


def test_admin_stats(client, store, menu, admin_headers):
    run(store.insert_one("payments", {"price": 10.1, "menuItems": []}))
    run(store.insert_one("payments", {"price": 20.2, "menuItems": []}))

    response = client.get("/admin-stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"revenue": 30.3, "users": 2, "products": 4, "orders": 2}


def test_admin_stats_without_payments():
    stats = run(AnalyticsAggregator(InMemoryDocumentStore()).admin_stats())
    assert stats == {"revenue": 0, "users": 0, "products": 0, "orders": 0}
