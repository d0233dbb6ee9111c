import json

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from storefront.core.security import create_access_token, get_password_hash, Identity
from storefront.db.session import build_engine, create_db_and_tables, get_session
from storefront.main import app
from storefront.models.product import Category, Product
from storefront.models.user import User
from storefront.routers.checkout import get_payment_gateway
from storefront.services.cart_store import CartStore, get_cart_store
from storefront.services.gateway.fake_adapter import FakeGateway, sign_payload

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture()
def engine(tmp_path):
    """A fresh file-backed SQLite database per test, so threads get real connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'storefront-test.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def products(session):
    """Apple at 150 cents and Bread at 300 cents, keyed by name."""
    category = Category(name="Groceries")
    session.add(category)
    session.commit()
    session.refresh(category)

    apple = Product(name="Apple", price_cents=150, unit="piece", image_url="/images/apple.webp", category_id=category.id)
    bread = Product(name="Bread", price_cents=300, unit="loaf", image_url="/images/bread.webp", category_id=category.id)
    session.add(apple)
    session.add(bread)
    session.commit()
    session.refresh(apple)
    session.refresh(bread)
    return {"Apple": apple, "Bread": bread}


def _make_user(session, email, is_superuser=False):
    user = User(email=email, password_hash=get_password_hash("password123"), is_superuser=is_superuser)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def user(session):
    return _make_user(session, "buyer@example.com")


@pytest.fixture()
def admin(session):
    return _make_user(session, "ops@example.com", is_superuser=True)


@pytest.fixture()
def identity(user):
    return Identity(user_id=user.id, email=user.email)


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture()
def gateway():
    return FakeGateway(webhook_secret=WEBHOOK_SECRET)


@pytest.fixture()
def cart_store():
    return CartStore()


@pytest.fixture()
def client(engine, gateway, cart_store):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_cart_store] = lambda: cart_store
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def completion_event(order_id, event_type="checkout.session.completed"):
    """Serialized completion envelope and its valid signature."""
    body = json.dumps({
        "id": "evt_test",
        "type": event_type,
        "data": {"object": {"id": "cs_test", "client_reference_id": str(order_id)}},
    })
    return body, sign_payload(body, WEBHOOK_SECRET)


ADDRESS = {
    "full_name": "Ada Lovelace",
    "street": "12 St James's Square",
    "city": "London",
    "zip": "SW1Y 4JH",
    "country": "GB",
}
