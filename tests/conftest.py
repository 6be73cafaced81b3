import asyncio

import pytest
from fastapi.testclient import TestClient

from config import settings
from database import create_tables, make_database
from main import app
from rate_limit import FixedWindowRateLimiter
from storage import DatabaseStorage, MemStorage


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "storage_backend", "memory")
    monkeypatch.setattr(settings, "session_store", "memory")
    monkeypatch.setattr(settings, "trust_proxy", True)
    app.state.rate_limiter = FixedWindowRateLimiter(window_seconds=15 * 60, max_requests=100)
    # entering the context runs the startup hooks, which seed a fresh store
    with TestClient(app) as test_client:
        yield test_client


def login_admin(test_client):
    response = test_client.post("/api/login", json={
        "username": settings.admin_username,
        "password": settings.admin_password,
        "securityCode": settings.admin_security_code,
    })
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def admin_client(client):
    login_admin(client)
    return client


@pytest.fixture
def anon_client(client):
    """Second cookie jar against the same running app."""
    return TestClient(app)


@pytest.fixture(params=["memory", "database"])
def run_with_storage(request, tmp_path):
    """Run an async scenario against each storage backend."""

    def run(scenario):
        async def runner():
            if request.param == "memory":
                return await scenario(MemStorage())
            url = f"sqlite:///{tmp_path / 'bakery_test.db'}"
            create_tables(url)
            database = make_database(url)
            await database.connect()
            try:
                return await scenario(DatabaseStorage(database))
            finally:
                await database.disconnect()

        return asyncio.run(runner())

    run.backend = request.param
    return run


def order_payload(**overrides):
    payload = {
        "customerName": "Juan Dela Cruz",
        "customerPhone": "09171234567",
        "deliveryAddress": "123 Rizal St, Manila",
        "paymentMethod": "cod",
        "totalAmount": "90.00",
        "items": [
            {"id": 2, "name": "Butter Croissant", "price": "45.00", "quantity": 1},
            {"id": 1, "name": "Pandesal", "price": "5.00", "quantity": 9},
        ],
    }
    payload.update(overrides)
    return payload
