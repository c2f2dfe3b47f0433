import copy

import pytest
from fastapi.testclient import TestClient

from storefront.core import CatalogStore
from storefront.database import InMemoryStorage
from storefront.main import app, get_store

ADMIN_KEY = "admin-secret-key-2024"

MOCK_PRODUCTS = [
    {
        "id": "1",
        "name": "Laptop",
        "slug": "laptop",
        "description": "High performance laptop",
        "price": 1299.99,
        "category": "Electronics",
        "inventory": 50,
        "lastUpdated": "2024-01-01T00:00:00Z",
    },
    {
        "id": "2",
        "name": "Mouse",
        "slug": "mouse",
        "description": "Wireless mouse",
        "price": 29.99,
        "category": "Electronics",
        "inventory": 100,
        "lastUpdated": "2024-01-01T00:00:00Z",
    },
]


def make_product(**overrides):
    base = copy.deepcopy(MOCK_PRODUCTS[0])
    base.update(overrides)
    return base


@pytest.fixture(autouse=True)
def admin_key(monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEY", ADMIN_KEY)
    return ADMIN_KEY


@pytest.fixture
def storage():
    return InMemoryStorage(MOCK_PRODUCTS)


@pytest.fixture
def store(storage):
    return CatalogStore(storage)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
