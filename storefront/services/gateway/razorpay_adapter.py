"""Razorpay payment gateway adapter.

Checkout sessions are Razorpay payment links: the order id travels as the
link's ``reference_id`` and comes back on the ``payment_link.paid`` webhook,
which is translated into the canonical ``checkout.session.completed`` event.
"""

import json
from typing import Optional

import razorpay
from razorpay.errors import SignatureVerificationError

from storefront.core.exceptions import SignatureInvalid
from storefront.core.logging_config import get_logger
from storefront.models.webhook import CHECKOUT_SESSION_COMPLETED
from storefront.services.gateway.port import (
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentGateway,
)

log = get_logger(__name__)

# Razorpay caps each note value at 256 characters
NOTE_MAX_LENGTH = 255


def translate_event(event: dict) -> dict:
    event_type = event.get("event", "")
    payload = event.get("payload") or {}

    if event_type == "payment_link.paid":
        entity = (payload.get("payment_link") or {}).get("entity") or {}
        return {
            "type": CHECKOUT_SESSION_COMPLETED,
            "data": {"object": {
                "id": entity.get("id"),
                "client_reference_id": entity.get("reference_id"),
            }},
        }

    return {"type": event_type, "data": {"object": payload}}


class RazorpayGateway(PaymentGateway):

    def __init__(self, key_id: str, key_secret: str, webhook_secret: str, client: Optional[razorpay.Client] = None) -> None:
        self.client = client or razorpay.Client(auth=(key_id, key_secret))
        self.webhook_secret = webhook_secret

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        currency = request.line_items[0].currency if request.line_items else "inr"
        items_note = "; ".join(
            f"{item.name} x{item.quantity} @ {item.unit_amount_cents}" for item in request.line_items
        )
        data = {
            "amount": request.amount_cents,
            "currency": currency.upper(),
            "reference_id": request.client_reference_id,
            "description": f"Order #{request.client_reference_id}",
            "callback_url": request.success_url,
            "callback_method": "get",
            "notes": {
                "cancel_url": request.cancel_url[:NOTE_MAX_LENGTH],
                "items": items_note[:NOTE_MAX_LENGTH],
            },
        }

        link = self.client.payment_link.create(data)
        log.info(f"[Order: {request.client_reference_id}] Razorpay payment link {link.get('id')} created")
        return CheckoutSessionResult(url=link["short_url"], session_id=link.get("id"))

    def construct_event(self, payload: str, signature: Optional[str]) -> dict:
        if not signature:
            raise SignatureInvalid("Missing signature")
        try:
            self.client.utility.verify_webhook_signature(payload, signature, self.webhook_secret)
        except SignatureVerificationError as e:
            raise SignatureInvalid(str(e)) from e

        event = json.loads(payload)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not a JSON object")
        return translate_event(event)
