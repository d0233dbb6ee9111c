from typing import Dict, Iterable, List, Optional
from sqlmodel import Session, select
from storefront.models.product import Category, Product, ProductRecord


class ProductCatalog:
    """Read-only product lookups backed by the product table."""

    def __init__(self, session: Session):
        self.session = session

    def lookup_by_ids(self, ids: Iterable[int]) -> Dict[int, ProductRecord]:
        ids = list(ids)
        if not ids:
            return {}
        products = self.session.exec(select(Product).where(Product.id.in_(ids))).all()
        return {p.id: ProductRecord.from_product(p) for p in products}

    def lookup_by_name(self, name: str) -> Optional[ProductRecord]:
        # Names are not unique; the oldest product wins
        product = self.session.exec(
            select(Product).where(Product.name == name).order_by(Product.id)
        ).first()
        return ProductRecord.from_product(product) if product else None

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def get(self, product_id: int) -> Optional[ProductRecord]:
        product = self.get_product(product_id)
        return ProductRecord.from_product(product) if product else None

    def list_products(self, category_id: Optional[int] = None, q: Optional[str] = None) -> List[Product]:
        statement = select(Product)
        if category_id is not None:
            statement = statement.where(Product.category_id == category_id)
        if q:
            statement = statement.where(Product.name.ilike(f"%{q}%"))
        return self.session.exec(statement.order_by(Product.id)).all()

    def list_categories(self) -> List[Category]:
        return self.session.exec(select(Category).order_by(Category.name)).all()
