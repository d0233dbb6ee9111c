"""Payment gateway factory.

get_gateway() builds the adapter named by settings.PAYMENT_PROVIDER on first
use; set_gateway() / reset_gateway() swap it (useful for tests).
"""

from typing import Optional

from storefront.core.config import settings
from storefront.services.gateway.fake_adapter import FakeGateway
from storefront.services.gateway.port import PaymentGateway

_current_gateway: Optional[PaymentGateway] = None


def build_gateway(provider: str) -> PaymentGateway:
    if provider == "fake":
        return FakeGateway(webhook_secret=settings.PAYMENT_WEBHOOK_SECRET)
    if provider == "razorpay":
        from storefront.services.gateway.razorpay_adapter import RazorpayGateway

        return RazorpayGateway(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            webhook_secret=settings.PAYMENT_WEBHOOK_SECRET,
        )
    raise ValueError(f"Unknown payment provider: {provider}")


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway(settings.PAYMENT_PROVIDER)
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
