from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session

from storefront.core.security import Identity
from storefront.db.session import get_session
from storefront.routers.auth import get_current_identity_optional
from storefront.services.checkout import CheckoutRequest, CheckoutResponse, CheckoutService
from storefront.services.gateway import get_gateway
from storefront.services.gateway.port import PaymentGateway
from storefront.services.reconciler import PaymentReconciler, WebhookOutcome

router = APIRouter()


def get_payment_gateway() -> PaymentGateway:
    return get_gateway()

def get_checkout_service(
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CheckoutService:
    return CheckoutService(session, gateway)

def get_reconciler(
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentReconciler:
    return PaymentReconciler(session, gateway)


@router.post("/", response_model=CheckoutResponse)
def checkout(
    checkout_in: CheckoutRequest,
    identity: Optional[Identity] = Depends(get_current_identity_optional),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Persist a pending order and return the hosted payment page URL"""
    return service.checkout(identity, checkout_in.address, checkout_in.items)


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    signature: Optional[str] = Header(None),
    x_razorpay_signature: Optional[str] = Header(None),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    body = await request.body()
    # Signature check and the paid UPDATE are blocking; keep them off the event loop
    outcome = await run_in_threadpool(reconciler.handle_notification, body, signature or x_razorpay_signature)
    if outcome == WebhookOutcome.REJECTED:
        raise HTTPException(status_code=400, detail="Invalid signature")
    return {"status": "ok"}
