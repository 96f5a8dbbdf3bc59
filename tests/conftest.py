"""Shared pytest fixtures for the storefront tests."""

from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.services.cart_store import CartStore, ProductSnapshot
from storefront.services.storage import MemoryStorage


SHIPPING = {
    "first_name": "Thandi",
    "last_name": "Nkosi",
    "email": "thandi@example.com",
    "phone": "082 555 0199",
    "address_line_1": "12 Long Street",
    "city": "Cape Town",
    "state": "Western Cape",
    "postal_code": "8001",
}

CARD = {
    "type": "card",
    "card_holder": "T Nkosi",
    "card_number": "4242 4242 4242 4242",
    "card_expiry": "12/29",
    "card_cvc": "123",
}


@pytest.fixture
def app():
    """Create an app bound to an in-memory database."""
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def customer(app):
    """Create a customer with a complete saved profile."""
    from storefront.model import User

    user = User(
        email="thandi@example.com",
        password_hash=generate_password_hash("secret123"),
        first_name="Thandi",
        last_name="Nkosi",
        phone="0825550199",
        address_line_1="12 Long Street",
        city="Cape Town",
        state="Western Cape",
        postal_code="8001",
        country="South Africa",
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_headers(customer):
    token = create_access_token(identity=str(customer.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def products(app):
    """Create a small catalog: two active products and one inactive."""
    from storefront.model import Product

    whey = Product(name="Whey Protein", category="Protein", price=Decimal("250.00"), stock=10,
                   flavors=["Chocolate", "Vanilla"], sizes=["1kg", "2kg"])
    creatine = Product(name="Creatine", category="Performance", price=Decimal("199.99"), stock=5)
    retired = Product(name="Old Formula", category="Protein", price=Decimal("100.00"), status="inactive")
    db.session.add_all([whey, creatine, retired])
    db.session.commit()
    return {"whey": whey, "creatine": creatine, "retired": retired}


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart(storage):
    """An empty cart backed by in-memory storage."""
    store = CartStore(storage)
    store.load()
    return store


@pytest.fixture
def whey():
    return ProductSnapshot(id="whey", name="Whey Protein", price=Decimal("250.00"))


@pytest.fixture
def creatine():
    return ProductSnapshot(id="creatine", name="Creatine", price=Decimal("199.99"))
