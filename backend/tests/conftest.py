"""
Pytest fixtures for MiniPOS backend tests.

Provides test database setup, seeded stores/products/users, an open register
and an authenticated test client per role.
"""

from types import SimpleNamespace

import pytest

from minipos import create_app
from minipos.extensions import db
from minipos.models import Product, Store, Warehouse
from minipos.services import auth_service, register_service, stock_service


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def seed(db_session):
    """
    One store, one warehouse, three products and one user per role.

    Product A: price 10.00, 5 in the store
    Product B: price 4.50, 10 in the store
    Product C: price 2.00, 0 in the store (no stock record)
    """
    store = Store(name="Main Street", footer_text=None)
    warehouse = Warehouse(name="Back Warehouse")
    db_session.add_all([store, warehouse])
    db_session.commit()

    product_a = Product(code="A-001", name="Product A", cost_cents=600, price_cents=1000, alert_quantity=2)
    product_b = Product(code="B-001", name="Product B", cost_cents=200, price_cents=450)
    product_c = Product(code="C-001", name="Product C", cost_cents=100, price_cents=200)
    db_session.add_all([product_a, product_b, product_c])
    db_session.commit()

    stock_service.set_quantity(product_a.id, 5, store_id=store.id)
    stock_service.set_quantity(product_b.id, 10, store_id=store.id)
    db_session.commit()

    admin = auth_service.create_user("admin", PASSWORD, role="admin")
    manager = auth_service.create_user("manager", PASSWORD, role="manager", store_id=store.id)
    cashier = auth_service.create_user("cashier", PASSWORD, role="cashier", store_id=store.id)

    return SimpleNamespace(
        store_id=store.id,
        warehouse_id=warehouse.id,
        product_a_id=product_a.id,
        product_b_id=product_b.id,
        product_c_id=product_c.id,
        admin_id=admin.id,
        manager_id=manager.id,
        cashier_id=cashier.id,
    )


@pytest.fixture(scope='function')
def register_id(seed):
    """An OPEN register session for the seeded store (opening cash 100.00)."""
    session = register_service.open_session(seed.cashier_id, seed.store_id, 10000)
    return session.id


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
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
def admin_headers(client, seed):
    return auth_headers(get_auth_token(client, "admin"))


@pytest.fixture(scope='function')
def manager_headers(client, seed):
    return auth_headers(get_auth_token(client, "manager"))


@pytest.fixture(scope='function')
def cashier_headers(client, seed):
    return auth_headers(get_auth_token(client, "cashier"))
