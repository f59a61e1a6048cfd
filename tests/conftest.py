import os
import tempfile

# settings are read at import time, so the test environment goes in first
_DB_DIR = tempfile.mkdtemp(prefix="checkout-tests-")
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'checkout.db')}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["GATEWAY_KEY_ID"] = "rzp_test_key"
os.environ["GATEWAY_KEY_SECRET"] = "client-callback-secret"
os.environ["GATEWAY_WEBHOOK_SECRET"] = "webhook-secret"

from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import checkout.data.models  # noqa: F401
from checkout.data.database import Base, SessionLocal, engine
from checkout.data.models import (
    AddressModel,
    CartItemModel,
    CartModel,
    MaterialModel,
    ProductModel,
    UserModel,
)
from checkout.main import create_app
from checkout.services.gateway_client import GatewayIntent
from checkout.services.signature import SignatureVerifier

CLIENT_SECRET = os.environ["GATEWAY_KEY_SECRET"]
WEBHOOK_SECRET = os.environ["GATEWAY_WEBHOOK_SECRET"]


class FakeGatewayClient:
    """Stands in for the gateway REST API and remembers every intent it opened."""

    public_key = "rzp_test_key"

    def __init__(self):
        self.calls = []

    def create_intent(self, order_id, amount, currency):
        self.calls.append({"order_id": order_id, "amount": amount, "currency": currency})
        return GatewayIntent(
            gateway_order_id=f"order_fake_{len(self.calls)}",
            amount=amount,
            currency=currency,
            status="created",
        )

    def close(self):
        pass


class AllowAllLimiter:
    def check(self, scope, user_id):
        return None


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def gateway():
    return FakeGatewayClient()


@pytest.fixture()
def verifier():
    return SignatureVerifier(client_secret=CLIENT_SECRET, webhook_secret=WEBHOOK_SECRET)


@pytest.fixture()
def client(gateway, verifier):
    app = create_app(gateway=gateway, verifier=verifier, rate_limiter=AllowAllLimiter())
    return TestClient(app)


@pytest.fixture()
def shop(db):
    """
    Builds a customer with an address and a filled cart.
    `lines` is a list of (product name, base price, material name, material price, quantity).
    """
    counter = {"n": 0}

    def _build(lines=(("Servo", "19.99", "PLA", "0.00", 3),)):
        counter["n"] += 1
        user = UserModel(
            name=f"Customer {counter['n']}",
            email=f"customer{counter['n']}@example.com",
            phone="+919800000000",
        )
        db.add(user)
        db.flush()

        address = AddressModel(
            user_id=user.id,
            line1="12 MG Road",
            city="Bengaluru",
            state="KA",
            postal_code="560001",
            country="IN",
        )
        cart = CartModel(user_id=user.id)
        db.add_all([address, cart])
        db.flush()

        product_ids, material_ids = [], []
        for product_name, base_price, material_name, material_price, quantity in lines:
            product = ProductModel(name=product_name, base_price=Decimal(base_price), is_active=True)
            material = MaterialModel(name=material_name, price=Decimal(material_price), is_active=True)
            db.add_all([product, material])
            db.flush()
            db.add(CartItemModel(cart_id=cart.id, product_id=product.id, material_id=material.id, quantity=quantity))
            product_ids.append(product.id)
            material_ids.append(material.id)

        db.commit()
        return SimpleNamespace(
            user_id=user.id,
            address_id=address.id,
            cart_id=cart.id,
            product_ids=product_ids,
            material_ids=material_ids,
            headers={"X-User-Id": str(user.id)},
        )

    return _build
