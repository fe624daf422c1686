"""
Pytest fixtures for Retail POS backend tests.

Provides the application on TestingConfig, a freshly wiped database per
test, user/product factories and helpers for calling procedures.
"""

import json
from decimal import Decimal

import pytest

from retail_pos import create_app
from retail_pos.config import TestingConfig
from retail_pos.extensions import db
from retail_pos.models import Product, User
from retail_pos.services.auth_service import hash_password

PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
def make_user(db_session):
    """Factory: make_user("alice", role="cashier", is_active=True) -> User."""
    def _make_user(username, role="cashier", is_active=True, password=PASSWORD):
        user = User(
            username=username,
            email=f"{username}@store.test",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture(scope='function')
def manager(make_user):
    return make_user("manager", role="manager")


@pytest.fixture(scope='function')
def cashier(make_user):
    return make_user("cashier", role="cashier")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name="Widget", stock_quantity=10, ...) -> Product."""
    def _make_product(
        name="Widget",
        cost_price="10.00",
        selling_price="15.00",
        stock_quantity=10,
        min_stock_level=0,
        barcode=None,
        category=None,
    ):
        product = Product(
            name=name,
            cost_price=Decimal(cost_price),
            selling_price=Decimal(selling_price),
            stock_quantity=stock_quantity,
            min_stock_level=min_stock_level,
            barcode=barcode,
            category=category,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make_product


def call(client, name, payload=None, headers=None, method="POST"):
    """Invoke a procedure; queries can be sent as GET with ?input=<json>."""
    if method == "GET":
        query = {"input": json.dumps(payload)} if payload is not None else {}
        return client.get(f"/rpc/{name}", query_string=query, headers=headers)
    return client.post(f"/rpc/{name}", json=payload if payload is not None else {}, headers=headers)


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = call(client, "loginUser", {"username": username, "password": password})
    if response.status_code == 200:
        return response.json["result"]["token"]
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return auth_headers(get_auth_token(client, manager.username))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier):
    return auth_headers(get_auth_token(client, cashier.username))
