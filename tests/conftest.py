"""Shared fixtures: Flask app on in-memory SQLite, test client, in-memory unit of work."""

import pytest

from config import TestingConfig
from wrenchd import create_app
from wrenchd.extensions import db
from wrenchd.repositories.memory import MemoryStore, MemoryUnitOfWork


@pytest.fixture
def app():
    """Fresh app + schema per test."""
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def memory_uow(memory_store):
    return MemoryUnitOfWork(memory_store)


# ---------------------------------------------------------------------
# API data fixtures
# ---------------------------------------------------------------------
@pytest.fixture
def customer(client):
    resp = client.post("/api/customers", json={"name": "Alice", "email": "alice@example.com"})
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def vehicle(client, customer):
    resp = client.post(
        "/api/vehicles",
        json={"customerId": customer["id"], "make": "Ford", "model": "Focus", "year": 2020},
    )
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def supplier(client):
    resp = client.post("/api/suppliers", json={"name": "Parts Direct Ltd"})
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def oil_filter(client, supplier):
    """Tracked inventory item starting at quantity 10."""
    resp = client.post(
        "/api/inventory",
        json={
            "name": "Oil Filter",
            "partNumber": "OF-100",
            "category": "Filters",
            "supplierId": supplier["id"],
            "costPrice": "4.50",
            "retailPrice": "8.00",
            "quantity": 10,
            "lowStockThreshold": 5,
        },
    )
    assert resp.status_code == 201
    return resp.get_json()
