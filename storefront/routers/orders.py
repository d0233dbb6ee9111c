from typing import List, Optional
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from storefront.core.config import settings
from storefront.db.session import get_session
from storefront.models.order import OrderRead
from storefront.models.user import User
from storefront.routers.auth import get_current_user
from storefront.services.order import OrderService

router = APIRouter()

def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(session)

@router.get("/", response_model=List[OrderRead])
def list_orders(
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Order history of the current user, newest first"""
    return [OrderRead.from_order(order) for order in service.get_user_orders(current_user.id)]

@router.get("/pending", response_model=List[OrderRead])
def list_stale_pending_orders(
    older_than_minutes: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Unpaid orders older than the threshold, for follow-up by operators"""
    if not current_user.is_superuser:
        raise HTTPException(status_code=403, detail="Not authorized")

    minutes = settings.PENDING_ORDER_STALE_MINUTES if older_than_minutes is None else older_than_minutes
    orders = service.get_stale_pending_orders(timedelta(minutes=minutes))
    return [OrderRead.from_order(order) for order in orders]
