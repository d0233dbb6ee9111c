from typing import Optional
from sqlmodel import Field, SQLModel

class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str = Field(index=True)
    image_url: Optional[str] = Field(default=None, max_length=512)

    # Pricing, in minor currency units
    price_cents: int = Field(ge=0)

    # Display label for one unit, e.g. "500 g" or "piece"
    unit: str

    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)


class ProductRecord(SQLModel):
    """Read-only view of a catalog entry handed to the cart and checkout."""
    id: int
    name: str
    unit_price_cents: int
    image_url: Optional[str] = None
    unit: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductRecord":
        return cls(
            id=product.id,
            name=product.name,
            unit_price_cents=product.price_cents,
            image_url=product.image_url,
            unit=product.unit,
        )
