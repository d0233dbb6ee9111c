import uuid
from typing import Optional
from fastapi import APIRouter, Cookie, Depends, Header, Response
from sqlmodel import Session

from storefront.core.config import settings
from storefront.db.session import get_session
from storefront.models.cart import Cart, PricedCart
from storefront.services.cart_store import CartStore, get_cart_store
from storefront.services.catalog import ProductCatalog
from storefront.services.pricing import price_cart

router = APIRouter()


def get_cart_session_id(
    response: Response,
    session_cookie: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    x_session_id: Optional[str] = Header(None),
) -> str:
    """Cart session from the X-Session-Id header or the session cookie; minted if absent."""
    session_id = x_session_id or session_cookie
    if not session_id:
        session_id = uuid.uuid4().hex
    if session_id != session_cookie:
        response.set_cookie(settings.SESSION_COOKIE_NAME, session_id, httponly=True, samesite="lax")
    return session_id


def get_catalog(session: Session = Depends(get_session)) -> ProductCatalog:
    return ProductCatalog(session)


def _priced(cart: Cart, catalog: ProductCatalog) -> PricedCart:
    return price_cart(cart, catalog.lookup_by_ids)


@router.get("/", response_model=PricedCart)
def get_cart(
    session_id: str = Depends(get_cart_session_id),
    store: CartStore = Depends(get_cart_store),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Current cart with line totals"""
    return _priced(store.get(session_id), catalog)


@router.post("/items", response_model=PricedCart)
def add_to_cart(
    product_id: int,
    quantity: int = 1,
    session_id: str = Depends(get_cart_session_id),
    store: CartStore = Depends(get_cart_store),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Add quantity for a product; a negative quantity decrements"""
    return _priced(store.add(session_id, product_id, quantity), catalog)


@router.put("/items/{product_id}", response_model=PricedCart)
def set_cart_item_quantity(
    product_id: int,
    quantity: int,
    session_id: str = Depends(get_cart_session_id),
    store: CartStore = Depends(get_cart_store),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Set the exact quantity for a product; 0 or less removes it"""
    return _priced(store.set_quantity(session_id, product_id, quantity), catalog)


@router.delete("/items/{product_id}", response_model=PricedCart)
def remove_from_cart(
    product_id: int,
    session_id: str = Depends(get_cart_session_id),
    store: CartStore = Depends(get_cart_store),
    catalog: ProductCatalog = Depends(get_catalog),
):
    return _priced(store.remove(session_id, product_id), catalog)


@router.delete("/", response_model=PricedCart)
def clear_cart(
    session_id: str = Depends(get_cart_session_id),
    store: CartStore = Depends(get_cart_store),
    catalog: ProductCatalog = Depends(get_catalog),
):
    return _priced(store.clear(session_id), catalog)
