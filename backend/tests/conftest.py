"""
Pytest fixtures for tillpoint backend tests.

Provides a fresh application per test (in-memory SQLite, seeded defaults),
the wired core, a test client, and authentication helpers.
"""

from decimal import Decimal

import pytest

from tillpoint import create_app
from tillpoint.core import get_core
from tillpoint.extensions import db
from tillpoint.models import Product, User
from tillpoint.services.cart_service import CartBuilder


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'BCRYPT_ROUNDS': 4,
    'STORE_WRITE_ATTEMPTS': 1,
    'LOCK_TIMEOUT_SECONDS': 5,
    'ADVISOR_API_URL': '',
}


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app(dict(TEST_CONFIG))

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def core(app):
    return get_core()


@pytest.fixture(scope='function')
def cashier():
    return User(id="cashier-1", username="cashier1", role="CASHIER")


def add_product(core, product_id: str, *, stock: int, price: str = "2.50",
                name: str | None = None, category: str = "General", min_stock: int = 0) -> Product:
    """Upsert a product through the catalog and return the stored copy."""
    return core.catalog.upsert(Product(
        id=product_id,
        name=name or f"Product {product_id}",
        category=category,
        price=Decimal(price),
        stock=stock,
        min_stock=min_stock,
    ))


def cart_with(core, *quantities: tuple[str, int]) -> CartBuilder:
    """Build a cart holding quantity units of each product id."""
    cart = CartBuilder()
    for product_id, quantity in quantities:
        for _ in range(quantity):
            assert cart.add_item(core.catalog.get(product_id))
    return cart


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client):
    return auth_headers(get_auth_token(client, "admin", "123456"))


@pytest.fixture(scope='function')
def cashier_headers(client):
    return auth_headers(get_auth_token(client, "cashier1", "password"))
