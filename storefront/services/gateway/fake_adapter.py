"""Configurable fake payment gateway for development and testing.

No external calls are made. Sessions point at a local fake checkout URL and
webhooks are signed with an HMAC-SHA256 hex digest of the raw body, so the
whole checkout -> webhook round trip can be driven from tests or curl.
"""

import hashlib
import hmac
import json
import time
from typing import List, Optional
from uuid import uuid4

from storefront.core.exceptions import SignatureInvalid
from storefront.services.gateway.port import (
    CheckoutSessionRequest,
    CheckoutSessionResult,
    PaymentGateway,
)


def sign_payload(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


class FakeGateway(PaymentGateway):

    def __init__(self, webhook_secret: str, base_url: str = "http://localhost:8000/fake-checkout") -> None:
        self.webhook_secret = webhook_secret
        self.base_url = base_url
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment provider unavailable"
        self.delay_seconds: float = 0.0
        self.requests: List[CheckoutSessionRequest] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment provider unavailable", delay_seconds: float = 0.0) -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.delay_seconds = delay_seconds

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        self.requests.append(request)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)

        session_id = f"cs_fake_{uuid4().hex[:12]}"
        return CheckoutSessionResult(url=f"{self.base_url}/{session_id}", session_id=session_id)

    def construct_event(self, payload: str, signature: Optional[str]) -> dict:
        if not signature:
            raise SignatureInvalid("Missing signature")
        expected = sign_payload(payload, self.webhook_secret)
        if not hmac.compare_digest(expected, signature):
            raise SignatureInvalid("Signature mismatch")

        event = json.loads(payload)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not a JSON object")
        return event
