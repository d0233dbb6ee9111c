from typing import List, Optional
from datetime import datetime, timezone
from sqlmodel import Field, Relationship, SQLModel

from storefront.models.product import Product


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    product_id: int = Field(foreign_key="product.id")
    quantity: int
    # Captured at checkout, never recomputed from the catalog
    price_cents: int

    order: Optional["Order"] = Relationship(back_populates="items")
    product: Optional[Product] = Relationship()


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    # Payment Info: flips false -> true exactly once
    paid: bool = Field(default=False, index=True)
    paid_at: Optional[datetime] = None

    # Shipping
    full_name: str
    street: str
    city: str
    zip: str
    country: str

    # Relationships
    items: List[OrderItem] = Relationship(back_populates="order")


# API schemas

class ShippingAddress(SQLModel):
    full_name: str
    street: str
    city: str
    zip: str
    country: str


class OrderItemRead(SQLModel):
    name: str
    quantity: int
    price_cents: int


class OrderRead(SQLModel):
    id: int
    paid: bool
    created_at: datetime
    address: ShippingAddress
    items: List[OrderItemRead]

    @classmethod
    def from_order(cls, order: Order) -> "OrderRead":
        return cls(
            id=order.id,
            paid=order.paid,
            created_at=order.created_at,
            address=ShippingAddress(
                full_name=order.full_name,
                street=order.street,
                city=order.city,
                zip=order.zip,
                country=order.country,
            ),
            items=[
                OrderItemRead(
                    name=item.product.name if item.product else "Unknown Product",
                    quantity=item.quantity,
                    price_cents=item.price_cents,
                )
                for item in order.items
            ],
        )
