import asyncio
import os

os.environ["ENV_MODE"] = "development"
os.environ["ACCESS_TOKEN_SECRET"] = "test-secret"
os.environ.pop("MONGODB_URI", None)
os.environ.pop("DB_USER", None)
os.environ.pop("DB_SECRET", None)

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.core.config import get_settings

get_settings.cache_clear()

from app.core.security import get_token_service
from app.dependencies import get_payments, get_store
from app.main import app
from app.services.payment import MockPaymentService
from app.services.store import InMemoryDocumentStore

ADMIN_EMAIL = "admin@bistro.test"
USER_EMAIL = "diner@bistro.test"


def run(coro):
    """Drive a store coroutine from a synchronous test."""
    return asyncio.run(coro)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(seed={
        "users": [
            {"_id": ObjectId(), "email": ADMIN_EMAIL, "name": "Owner", "role": "admin"},
            {"_id": ObjectId(), "email": USER_EMAIL, "name": "Diner"},
        ],
    })


@pytest.fixture
def payments() -> MockPaymentService:
    return MockPaymentService()


@pytest.fixture
def client(store, payments):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_payments] = lambda: payments
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_header(email: str) -> dict:
    token = get_token_service().issue({"email": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict:
    return auth_header(ADMIN_EMAIL)


@pytest.fixture
def user_headers() -> dict:
    return auth_header(USER_EMAIL)
