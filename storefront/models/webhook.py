"""Payment webhook event envelope.

Gateways hand the reconciler a verified envelope of the form
``{"type": ..., "data": {"object": {...}}}``. It is decoded once into a tagged
union: completion events get a typed payload, every other type falls into
``IgnoredEvent``.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag, TypeAdapter

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

# Largest value a signed 64-bit INTEGER primary key can hold
MAX_ORDER_ID = 2**63 - 1


class CheckoutSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    client_reference_id: Optional[str] = None


class CheckoutSessionData(BaseModel):
    object: CheckoutSession


class CheckoutSessionCompleted(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["checkout.session.completed"]
    data: CheckoutSessionData

    @property
    def order_id(self) -> Optional[int]:
        """The correlation token as an order id, or None if it is not one."""
        reference = self.data.object.client_reference_id
        if reference is None:
            return None
        reference = reference.strip()
        if not (reference.isascii() and reference.isdigit()):
            return None
        order_id = int(reference)
        if order_id > MAX_ORDER_ID:
            return None
        return order_id


class IgnoredEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = ""
    data: Dict[str, Any] = {}


def _event_tag(value: Any) -> str:
    if isinstance(value, dict):
        event_type = value.get("type")
    else:
        event_type = getattr(value, "type", None)
    return "completed" if event_type == CHECKOUT_SESSION_COMPLETED else "ignored"


WebhookEvent = Annotated[
    Union[
        Annotated[CheckoutSessionCompleted, Tag("completed")],
        Annotated[IgnoredEvent, Tag("ignored")],
    ],
    Discriminator(_event_tag),
]

_event_adapter = TypeAdapter(WebhookEvent)


def decode_event(envelope: Any) -> Union[CheckoutSessionCompleted, IgnoredEvent]:
    """Raises pydantic.ValidationError when the envelope is malformed."""
    return _event_adapter.validate_python(envelope)
