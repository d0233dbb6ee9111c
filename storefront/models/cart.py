from dataclasses import dataclass
from typing import List, Optional, Tuple
from pydantic import BaseModel


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class Cart:
    """Immutable snapshot of one session's cart, in insertion order."""
    lines: Tuple[CartLine, ...] = ()

    def quantity_of(self, product_id: int) -> int:
        for line in self.lines:
            if line.product_id == product_id:
                return line.quantity
        return 0

    def product_ids(self) -> List[int]:
        return [line.product_id for line in self.lines]

    def __len__(self) -> int:
        return len(self.lines)


# Priced views, never stored. All amounts are in cents.

class PricedLine(BaseModel):
    product_id: int
    name: str
    image_url: Optional[str] = None
    unit_price_cents: int
    quantity: int
    line_total_cents: int


class PricedCart(BaseModel):
    items: List[PricedLine] = []
    subtotal_cents: int = 0
    tax_cents: int = 0
    total_cents: int = 0
