"""Turns a cart snapshot into priced lines and totals.

Pricing is best effort: lines whose product is gone from the catalog, or whose
quantity is not positive, are skipped rather than reported. A stale cart must
never break the cart page or checkout.
"""

from typing import Callable, Iterable, Mapping

from storefront.models.cart import Cart, PricedCart, PricedLine
from storefront.models.product import ProductRecord

CatalogLookup = Callable[[Iterable[int]], Mapping[int, ProductRecord]]


def compute_tax_cents(subtotal_cents: int) -> int:
    # Flat placeholder until per-region/category rates exist
    return 0


def price_cart(cart: Cart, lookup_by_ids: CatalogLookup) -> PricedCart:
    if not cart.lines:
        return PricedCart(items=[], subtotal_cents=0, tax_cents=0, total_cents=0)

    # One batch lookup for every product in the cart
    products = lookup_by_ids(set(cart.product_ids()))

    items = []
    subtotal = 0
    for line in cart.lines:
        product = products.get(line.product_id)
        if product is None or line.quantity is None or line.quantity <= 0:
            continue

        line_total = product.unit_price_cents * line.quantity
        subtotal += line_total
        items.append(PricedLine(
            product_id=product.id,
            name=product.name,
            image_url=product.image_url,
            unit_price_cents=product.unit_price_cents,
            quantity=line.quantity,
            line_total_cents=line_total,
        ))

    tax = compute_tax_cents(subtotal)
    return PricedCart(items=items, subtotal_cents=subtotal, tax_cents=tax, total_cents=subtotal + tax)
