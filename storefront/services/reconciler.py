"""Payment webhook reconciliation.

The provider delivers at least once and expects every event to be
acknowledged. Only a bad signature is reported back as a failure; unknown
orders, repeated deliveries and event types we do not handle are all
acknowledged as processed.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.core.exceptions import SignatureInvalid
from storefront.core.logging_config import get_logger
from storefront.models.webhook import CheckoutSessionCompleted, decode_event
from storefront.services.gateway.port import PaymentGateway
from storefront.services.order import OrderService

log = get_logger(__name__)


class WebhookOutcome(str, Enum):
    REJECTED = "rejected"
    PROCESSED = "processed"


class PaymentReconciler:
    def __init__(self, session: Session, gateway: PaymentGateway):
        self.gateway = gateway
        self.orders = OrderService(session)

    def handle_notification(self, raw_payload: Union[bytes, str], signature: Optional[str]) -> WebhookOutcome:
        try:
            payload = raw_payload.decode("utf-8") if isinstance(raw_payload, bytes) else raw_payload
        except UnicodeDecodeError:
            log.warning("[WEBHOOK] Rejected: body is not UTF-8")
            return WebhookOutcome.REJECTED

        try:
            envelope = self.gateway.construct_event(payload, signature)
        except SignatureInvalid as e:
            log.warning(f"[WEBHOOK] Rejected: invalid signature ({e})")
            return WebhookOutcome.REJECTED
        except ValueError as e:
            log.warning(f"[WEBHOOK] Signed payload is not valid JSON, ignoring: {e}")
            return WebhookOutcome.PROCESSED

        try:
            event = decode_event(envelope)
        except ValidationError as e:
            log.warning(f"[WEBHOOK] Malformed {envelope.get('type')!r} event, ignoring: {e.error_count()} error(s)")
            return WebhookOutcome.PROCESSED

        if isinstance(event, CheckoutSessionCompleted):
            self._complete_checkout(event)
        else:
            log.info(f"[WEBHOOK] Ignoring event type {event.type!r}")
        return WebhookOutcome.PROCESSED

    def _complete_checkout(self, event: CheckoutSessionCompleted):
        order_id = event.order_id
        if order_id is None:
            log.warning(f"[WEBHOOK] Completion without a usable order reference: {event.data.object.client_reference_id!r}")
            return

        try:
            transitioned = self.orders.mark_paid(order_id)
            known = transitioned or self.orders.get_order_by_id(order_id) is not None
        except (SQLAlchemyError, OverflowError) as e:
            self.orders.session.rollback()
            log.warning(f"[Order: {order_id}] Lookup failed, treating as unknown order: {e}")
            return

        if transitioned:
            log.info(f"[Order: {order_id}] Marked as paid")
        elif not known:
            log.warning(f"[Order: {order_id}] Completion for unknown order, ignoring")
        else:
            log.info(f"[Order: {order_id}] Already paid, duplicate delivery ignored")
