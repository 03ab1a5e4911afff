"""
Pytest fixtures for POS backend tests.

Provides the application (in-memory SQLite), test client, per-test table
cleanup and a few catalogue products.
"""

import pytest

from pos_api import create_app
from pos_api.extensions import db
from pos_api.models import Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CORS_ORIGINS': {'http://localhost:5173'},
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


def make_product(session, *, barcode, name, price, cost=0, stock=0, unit="pcs"):
    product = Product(barcode=barcode, name=name, price=price, cost=cost, unit=unit, stock=stock)
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def coffee(db_session):
    """Price 50, cost 30, 10 in stock."""
    return make_product(db_session, barcode="8850000000011", name="Coffee Beans", price=50.0, cost=30.0, stock=10)


@pytest.fixture(scope='function')
def milk(db_session):
    """Price 20, cost 12, 3 in stock."""
    return make_product(db_session, barcode="8850000000028", name="Milk", price=20.0, cost=12.0, stock=3)


def sale_payload(*lines, discount=0, payment_method="cash", **extra):
    """
    Build a POST /api/sales body from (product, quantity) pairs.

    Line snapshots use the product's current name/price/cost.
    """
    items = []
    for product, quantity in lines:
        items.append({
            "product_id": product.id,
            "product_name": product.name,
            "price": product.price,
            "cost": product.cost,
            "quantity": quantity,
            "subtotal": product.price * quantity,
        })
    subtotal = sum(i["subtotal"] for i in items)
    body = {
        "items": items,
        "subtotal": subtotal,
        "discount": discount,
        "total": subtotal - discount,
        "payment_method": payment_method,
    }
    body.update(extra)
    return body
