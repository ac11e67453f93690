"""Pytest fixtures for the order lifecycle services."""

import os
from datetime import datetime, timedelta, timezone

# Must be set before any service module is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TRACING_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from shared.config import settings
from shared.config.database import Database
from shared.security.api_key import INTERNAL_API_KEY

# Register every model with Base before create_all
from services.product_service.models import Product
from services.cart_service.models import Cart, CartItem  # noqa: F401
from services.order_service.models import Order, OrderItem  # noqa: F401


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"


@pytest.fixture
async def database(database_url):
    db = Database(database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as s:
        yield s


@pytest.fixture
def make_product(database):
    """Insert a product in its own session and return its id."""
    async def _make(name="Widget", price=10.0, stock=5, low_stock_threshold=10):
        async with database.session_factory() as s:
            product = Product(name=name, price=price, stock=stock, low_stock_threshold=low_stock_threshold)
            s.add(product)
            await s.commit()
            return product.id
    return _make


@pytest.fixture
def client(database_url, monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_URL", database_url)
    from main import app

    with TestClient(app) as test_client:
        yield test_client


def create_access_token(user_id: int, expires_in: timedelta = timedelta(minutes=30)) -> str:
    """Mints a token the way the identity service does."""
    claims = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def bearer(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def user_headers():
    return bearer(1)


@pytest.fixture
def other_user_headers():
    return bearer(2)


@pytest.fixture
def admin_headers():
    return {"X-Internal-API-Key": INTERNAL_API_KEY}


@pytest.fixture
def create_product(client, admin_headers):
    def _create(name="Widget", price=10.0, stock=5, low_stock_threshold=10):
        resp = client.post(
            "/products/",
            json={"name": name, "price": price, "stock": stock, "low_stock_threshold": low_stock_threshold},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _create


@pytest.fixture
def stock_of(client, admin_headers):
    def _stock(product_id):
        resp = client.get(f"/products/{product_id}", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["stock"]
    return _stock


ADDRESS = {"address": "1 Main St", "city": "Springfield", "postal_code": "12345", "country": "US"}


@pytest.fixture
def place_order(client, user_headers):
    def _place(*lines, headers=None, shipping_price=0.0, tax_price=0.0):
        payload = {
            "order_items": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
            "shipping_address": ADDRESS,
            "payment_method": "credit_card",
            "shipping_price": shipping_price,
            "tax_price": tax_price,
        }
        return client.post("/orders/", json=payload, headers=headers or user_headers)
    return _place


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def expired_headers():
    return {"Authorization": f"Bearer {create_access_token(1, expires_in=timedelta(minutes=-5))}"}
