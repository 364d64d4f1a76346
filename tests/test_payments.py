from types import SimpleNamespace

import pytest
import stripe
from bson import ObjectId

from app.core.exceptions import InvalidArgument, PaymentProviderError
from app.services.checkout import PaymentOrchestrator
from app.services.payment import MockPaymentService, StripePaymentService, to_minor_units
from app.services.store import InMemoryDocumentStore
from tests.conftest import USER_EMAIL, run


@pytest.mark.parametrize("price,amount", [
    (19.99, 1999),
    (19.995, 2000),
    (0.29, 29),
    (10, 1000),
    ("4.35", 435),
])
def test_to_minor_units(price, amount):
    assert to_minor_units(price) == amount


@pytest.mark.parametrize("price", ["abc", float("nan"), float("inf")])
def test_to_minor_units_rejects_non_numbers(price):
    with pytest.raises(ValueError):
        to_minor_units(price)


def test_create_payment_intent(client, payments, user_headers):
    response = client.post("/create-payment-intent", json={"price": 19.99}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["clientSecret"].endswith("_secret_mock")

    assert payments.requests == [{
        "amount": 1999,
        "currency": "usd",
        "payment_method_types": ["card"],
        "metadata": {},
    }]


@pytest.mark.parametrize("price", [None, 0, -5, "ten", True])
def test_create_payment_intent_rejects_bad_price(client, payments, user_headers, price):
    response = client.post("/create-payment-intent", json={"price": price}, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["error"] is True
    assert payments.requests == []


def test_declined_payment_intent(client, payments, user_headers):
    payments.failure_rate = 1.0
    response = client.post("/create-payment-intent", json={"price": 5}, headers=user_headers)
    assert response.status_code == 502
    assert response.json()["error"] is True


def seed_cart(store, count):
    return [
        str(run(store.insert_one("carts", {"email": USER_EMAIL, "name": f"item {i}", "price": 5})).inserted_id)
        for i in range(count)
    ]


def test_record_payment_clears_paid_cart_items(client, store, user_headers):
    a, b, c = seed_cart(store, 3)
    menu_id = str(ObjectId())
    payment = {
        "email": USER_EMAIL,
        "price": 10,
        "transactionId": "pi_123",
        "cartItems": [a, b],
        "menuItems": [menu_id, menu_id],
        "status": "service pending",
    }

    response = client.post("/payments", json=payment, headers=user_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["insertResult"]["acknowledged"] is True
    assert body["deleteResult"] == {"acknowledged": True, "deletedCount": 2}

    assert [str(doc["_id"]) for doc in run(store.find("carts"))] == [c]

    stored = run(store.find("payments"))
    assert len(stored) == 1
    assert stored[0]["cartItems"] == [ObjectId(a), ObjectId(b)]
    assert stored[0]["menuItems"] == [ObjectId(menu_id), ObjectId(menu_id)]
    assert stored[0]["transactionId"] == "pi_123"
    assert "date" in stored[0]


def test_record_payment_survives_failed_cart_cleanup(client, store, user_headers):
    a, b = seed_cart(store, 2)
    store.fail_on.add(("delete_many", "carts"))

    response = client.post("/payments", json={"price": 10, "cartItems": [a, b]}, headers=user_headers)
    assert response.status_code == 200
    body = response.json()
    assert ObjectId.is_valid(body["insertResult"]["insertedId"])
    assert body["deleteResult"] is None

    store.fail_on.clear()
    stored = run(store.find("payments"))
    assert len(stored) == 1
    assert stored[0]["cleanupPending"] is True
    assert len(run(store.find("carts"))) == 2


def test_record_payment_failed_insert_deletes_nothing(client, store, user_headers):
    a, = seed_cart(store, 1)
    store.fail_on.add(("insert_one", "payments"))

    response = client.post("/payments", json={"price": 10, "cartItems": [a]}, headers=user_headers)
    assert response.status_code == 500
    assert response.json()["error"] is True
    assert len(run(store.find("carts"))) == 1


def test_record_payment_with_malformed_id(client, store, user_headers):
    response = client.post("/payments", json={"price": 10, "cartItems": ["bogus"]}, headers=user_headers)
    assert response.status_code == 400
    assert run(store.find("payments")) == []


def test_orchestrator_create_intent_validates_price():
    orchestrator = PaymentOrchestrator(InMemoryDocumentStore(), MockPaymentService(), currency="usd")
    with pytest.raises(InvalidArgument):
        run(orchestrator.create_intent(0.001))


def test_orchestrator_surfaces_declines():
    orchestrator = PaymentOrchestrator(InMemoryDocumentStore(), MockPaymentService(failure_rate=1.0))
    with pytest.raises(PaymentProviderError):
        run(orchestrator.create_intent(12.5))


def test_stripe_service_creates_card_intent(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(
            id="pi_test", client_secret="pi_test_secret_abc",
            amount=kwargs["amount"], currency=kwargs["currency"], status="requires_payment_method",
        )

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    service = StripePaymentService(api_key="sk_test_dummy")
    orchestrator = PaymentOrchestrator(InMemoryDocumentStore(), service, currency="usd")

    assert run(orchestrator.create_intent(19.99)) == "pi_test_secret_abc"
    assert calls[0]["amount"] == 1999
    assert calls[0]["currency"] == "usd"
    assert calls[0]["payment_method_types"] == ["card"]


def test_stripe_service_reports_stripe_errors(monkeypatch):
    def fake_create(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    result = run(StripePaymentService(api_key="sk_test_dummy").create_payment_intent(500))

    assert result.success is False
    assert result.error_code == "connection_error"
