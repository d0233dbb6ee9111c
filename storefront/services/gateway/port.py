"""Payment gateway port (abstract interface).

Every adapter creates hosted checkout sessions and verifies inbound webhooks,
handing back the canonical event envelope
``{"type": ..., "data": {"object": {...}}}``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class SessionLineItem:
    name: str
    unit_amount_cents: int
    quantity: int
    currency: str


@dataclass(frozen=True)
class CheckoutSessionRequest:
    client_reference_id: str
    line_items: Tuple[SessionLineItem, ...]
    success_url: str
    cancel_url: str
    mode: str = "payment"

    @property
    def amount_cents(self) -> int:
        return sum(item.unit_amount_cents * item.quantity for item in self.line_items)


@dataclass(frozen=True)
class CheckoutSessionResult:
    url: str
    session_id: Optional[str] = None


class PaymentGateway(ABC):

    @abstractmethod
    def create_checkout_session(self, request: CheckoutSessionRequest) -> CheckoutSessionResult:
        """Create a hosted payment session and return where to redirect the buyer."""
        ...

    @abstractmethod
    def construct_event(self, payload: str, signature: Optional[str]) -> dict:
        """Verify the webhook signature and return the canonical envelope.

        Raises SignatureInvalid when the signature is missing or wrong, and
        ValueError when the signed payload is not a JSON object.
        """
        ...
