"""Checkout: requested items -> pending order -> hosted payment session.

The order is committed before the payment provider is contacted, so the
provider's correlation id always refers to a real order. If the provider call
fails or times out the order simply stays pending; there is no rollback and no
retry. Pending orders that never get paid are reported by
``OrderService.get_stale_pending_orders``.
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import Session

from storefront.core.config import settings
from storefront.core.exceptions import InvalidArgument, PaymentGatewayError, Unauthorized
from storefront.core.logging_config import get_logger
from storefront.core.security import Identity
from storefront.models.order import ShippingAddress
from storefront.models.product import ProductRecord
from storefront.services.cart_store import MAX_LINE_QUANTITY
from storefront.services.catalog import ProductCatalog
from storefront.services.gateway.port import (
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentGateway,
    SessionLineItem,
)
from storefront.services.order import NewOrderLine, OrderService

log = get_logger(__name__)

# Bounded pool for outbound provider calls so a slow provider cannot pin request threads
_gateway_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="payment-gateway")


class CheckoutItem(BaseModel):
    name: str = ""
    price_cents: int
    quantity: int
    # When present, resolves the product by id instead of by name
    product_id: Optional[int] = None


class CheckoutRequest(BaseModel):
    address: ShippingAddress
    items: List[CheckoutItem]


class CheckoutResponse(BaseModel):
    url: str
    order_id: int


@dataclass(frozen=True)
class _ResolvedItem:
    item: CheckoutItem
    product: ProductRecord


class CheckoutService:
    def __init__(
        self,
        session: Session,
        gateway: PaymentGateway,
        timeout_seconds: Optional[float] = None,
        verify_prices: Optional[bool] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.session = session
        self.gateway = gateway
        self.catalog = ProductCatalog(session)
        self.orders = OrderService(session)
        self.timeout_seconds = settings.PAYMENT_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.verify_prices = settings.CHECKOUT_VERIFY_PRICES if verify_prices is None else verify_prices
        self.executor = executor or _gateway_executor

    def checkout(self, identity: Optional[Identity], address: ShippingAddress, items: List[CheckoutItem]) -> CheckoutResponse:
        if identity is None:
            raise Unauthorized()

        self._validate_items(items)
        resolved = [self._resolve(item) for item in items]

        order = self.orders.create_pending_order(
            user_id=identity.user_id,
            address=address,
            lines=[
                NewOrderLine(product_id=r.product.id, quantity=r.item.quantity, price_cents=r.item.price_cents)
                for r in resolved
            ],
        )

        request = CheckoutSessionRequest(
            client_reference_id=str(order.id),
            line_items=tuple(
                SessionLineItem(
                    name=r.item.name or r.product.name,
                    unit_amount_cents=r.item.price_cents,
                    quantity=r.item.quantity,
                    currency=settings.CURRENCY,
                )
                for r in resolved
            ),
            success_url=settings.CHECKOUT_SUCCESS_URL,
            cancel_url=settings.CHECKOUT_CANCEL_URL,
        )
        result = self._create_payment_session(order.id, request)

        log.info(f"[Order: {order.id}] Payment session {result.session_id} created for {identity.email}")
        return CheckoutResponse(url=result.url, order_id=order.id)

    def _validate_items(self, items: List[CheckoutItem]):
        if not items:
            raise InvalidArgument("Checkout requires at least one item")
        for item in items:
            if not item.name and item.product_id is None:
                raise InvalidArgument("Each item needs a product name or product_id")
            if item.quantity < 1 or item.quantity > MAX_LINE_QUANTITY:
                raise InvalidArgument(f"Quantity for {item.name or item.product_id} must be between 1 and {MAX_LINE_QUANTITY}")
            if item.price_cents < 0:
                raise InvalidArgument(f"Price for {item.name or item.product_id} must not be negative")

    def _resolve(self, item: CheckoutItem) -> _ResolvedItem:
        if item.product_id is not None:
            product = self.catalog.get(item.product_id)
        else:
            product = self.catalog.lookup_by_name(item.name)

        if product is None:
            raise InvalidArgument(f"Unknown product: {item.name or item.product_id}")

        if self.verify_prices and product.unit_price_cents != item.price_cents:
            raise InvalidArgument(
                f"Price for {product.name} changed: expected {product.unit_price_cents}, got {item.price_cents}"
            )
        return _ResolvedItem(item=item, product=product)

    def _create_payment_session(self, order_id: int, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        future = self.executor.submit(self.gateway.create_checkout_session, request)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FuturesTimeoutError:
            # Still queued calls must not reach the provider after the caller got a 502
            future.cancel()
            log.warning(f"[Order: {order_id}] Payment provider timed out after {self.timeout_seconds}s; order left pending")
            raise PaymentGatewayError(order_id, "timed out")
        except Exception as e:
            log.error(f"[Order: {order_id}] Payment session creation failed: {e}; order left pending")
            raise PaymentGatewayError(order_id, str(e)) from e
