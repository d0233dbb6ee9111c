import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session, select

from storefront.core.exceptions import InvalidArgument, PaymentGatewayError, Unauthorized
from storefront.models.order import Order, OrderItem, ShippingAddress
from storefront.services.checkout import CheckoutItem, CheckoutService
from storefront.services.order import OrderService

from conftest import ADDRESS

ADDR = ShippingAddress(**ADDRESS)


def all_orders(engine):
    with Session(engine) as s:
        return s.exec(select(Order)).all()


def all_items(engine):
    with Session(engine) as s:
        return s.exec(select(OrderItem)).all()


def load_order(engine, order_id):
    with Session(engine) as s:
        return s.get(Order, order_id)


def test_requires_identity(session, engine, gateway, products):
    service = CheckoutService(session, gateway)
    with pytest.raises(Unauthorized):
        service.checkout(None, ADDR, [CheckoutItem(name="Apple", price_cents=150, quantity=1)])

    assert all_orders(engine) == []
    assert gateway.requests == []


def test_creates_pending_order_and_returns_payment_url(session, engine, gateway, identity, products):
    service = CheckoutService(session, gateway)
    response = service.checkout(identity, ADDR, [
        CheckoutItem(name="Apple", price_cents=150, quantity=2),
        CheckoutItem(name="Bread", price_cents=300, quantity=1),
    ])

    assert response.url.startswith("http://localhost:8000/fake-checkout/")
    orders = all_orders(engine)
    assert len(orders) == 1
    order = orders[0]
    assert order.id == response.order_id
    assert order.paid is False
    assert order.paid_at is None
    assert order.user_id == identity.user_id
    assert order.full_name == "Ada Lovelace"
    assert order.country == "GB"

    lines = {item.product_id: (item.quantity, item.price_cents) for item in all_items(engine)}
    assert lines == {products["Apple"].id: (2, 150), products["Bread"].id: (1, 300)}


def test_payment_request_references_order(session, gateway, identity, products):
    response = CheckoutService(session, gateway).checkout(identity, ADDR, [
        CheckoutItem(name="Apple", price_cents=150, quantity=2),
    ])

    (request,) = gateway.requests
    assert request.client_reference_id == str(response.order_id)
    assert request.mode == "payment"
    assert request.amount_cents == 300
    assert [(li.name, li.unit_amount_cents, li.quantity) for li in request.line_items] == [("Apple", 150, 2)]


def test_client_price_is_recorded_as_submitted(session, engine, gateway, identity, products):
    CheckoutService(session, gateway, verify_prices=False).checkout(identity, ADDR, [
        CheckoutItem(name="Apple", price_cents=99, quantity=1),
    ])
    (item,) = all_items(engine)
    assert item.price_cents == 99


def test_price_mismatch_rejected_when_verifying(session, engine, gateway, identity, products):
    service = CheckoutService(session, gateway, verify_prices=True)
    with pytest.raises(InvalidArgument):
        service.checkout(identity, ADDR, [CheckoutItem(name="Apple", price_cents=99, quantity=1)])
    assert all_orders(engine) == []


def test_unknown_product_creates_no_order(session, engine, gateway, identity, products):
    service = CheckoutService(session, gateway)
    with pytest.raises(InvalidArgument):
        service.checkout(identity, ADDR, [
            CheckoutItem(name="Apple", price_cents=150, quantity=1),
            CheckoutItem(name="Unicorn", price_cents=1, quantity=1),
        ])

    assert all_orders(engine) == []
    assert all_items(engine) == []
    assert gateway.requests == []


def test_resolves_by_product_id(session, engine, gateway, identity, products):
    bread_id = products["Bread"].id
    CheckoutService(session, gateway).checkout(identity, ADDR, [
        CheckoutItem(product_id=bread_id, price_cents=300, quantity=3),
    ])

    (item,) = all_items(engine)
    assert item.product_id == bread_id
    assert gateway.requests[0].line_items[0].name == "Bread"


@pytest.mark.parametrize("items", [
    [],
    [CheckoutItem(name="Apple", price_cents=150, quantity=0)],
    [CheckoutItem(name="Apple", price_cents=150, quantity=100)],
    [CheckoutItem(name="Apple", price_cents=-1, quantity=1)],
    [CheckoutItem(price_cents=150, quantity=1)],
])
def test_invalid_items_rejected(session, engine, gateway, identity, products, items):
    with pytest.raises(InvalidArgument):
        CheckoutService(session, gateway).checkout(identity, ADDR, items)
    assert all_orders(engine) == []


def test_gateway_failure_leaves_order_pending(session, engine, gateway, identity, products):
    gateway.configure(should_succeed=False, failure_reason="card network down")

    with pytest.raises(PaymentGatewayError) as exc_info:
        CheckoutService(session, gateway).checkout(identity, ADDR, [
            CheckoutItem(name="Apple", price_cents=150, quantity=1),
        ])

    assert exc_info.value.status_code == 502
    assert "card network down" in exc_info.value.reason
    (order,) = all_orders(engine)
    assert order.id == exc_info.value.order_id
    assert order.paid is False


def test_gateway_timeout_is_bounded(session, engine, gateway, identity, products):
    gateway.configure(should_succeed=True, delay_seconds=1.0)
    service = CheckoutService(session, gateway, timeout_seconds=0.05)

    started = time.monotonic()
    with pytest.raises(PaymentGatewayError) as exc_info:
        service.checkout(identity, ADDR, [CheckoutItem(name="Apple", price_cents=150, quantity=1)])

    assert time.monotonic() - started < 0.9
    assert exc_info.value.reason == "timed out"
    (order,) = all_orders(engine)
    assert order.paid is False


def test_recorded_price_survives_catalog_change(session, engine, gateway, identity, products):
    CheckoutService(session, gateway).checkout(identity, ADDR, [
        CheckoutItem(name="Apple", price_cents=150, quantity=1),
    ])

    apple = products["Apple"]
    apple.price_cents = 500
    session.add(apple)
    session.commit()

    (item,) = all_items(engine)
    assert item.price_cents == 150


def test_order_timestamps_are_utc(session, engine, gateway, identity, products):
    before = datetime.now(timezone.utc)
    response = CheckoutService(session, gateway).checkout(identity, ADDR, [
        CheckoutItem(name="Apple", price_cents=150, quantity=1),
    ])
    OrderService(session).mark_paid(response.order_id)

    order = load_order(engine, response.order_id)
    for stamp in (order.created_at, order.paid_at):
        stamp = stamp if stamp.tzinfo else stamp.replace(tzinfo=timezone.utc)
        assert before - timedelta(seconds=1) <= stamp <= datetime.now(timezone.utc) + timedelta(seconds=1)


def test_timed_out_call_still_queued_never_reaches_gateway(session, engine, gateway, identity, products):
    executor = ThreadPoolExecutor(max_workers=1)
    release = threading.Event()
    executor.submit(release.wait)
    service = CheckoutService(session, gateway, timeout_seconds=0.05, executor=executor)

    try:
        with pytest.raises(PaymentGatewayError):
            service.checkout(identity, ADDR, [CheckoutItem(name="Apple", price_cents=150, quantity=1)])
    finally:
        release.set()
        executor.shutdown(wait=True)

    assert gateway.requests == []
    (order,) = all_orders(engine)
    assert order.paid is False
