from typing import List, Optional
from fastapi import APIRouter, Depends
from storefront.core.exceptions import NotFound
from storefront.models.product import Category, Product
from storefront.routers.cart import get_catalog
from storefront.services.catalog import ProductCatalog

router = APIRouter()
category_router = APIRouter()

@router.get("/", response_model=List[Product])
def read_products(
    category_id: Optional[int] = None,
    q: Optional[str] = None,
    catalog: ProductCatalog = Depends(get_catalog),
):
    return catalog.list_products(category_id=category_id, q=q)

@router.get("/{product_id}", response_model=Product)
def read_product(product_id: int, catalog: ProductCatalog = Depends(get_catalog)):
    product = catalog.get_product(product_id)
    if not product:
        raise NotFound("Product not found")
    return product

@category_router.get("/", response_model=List[Category])
def read_categories(catalog: ProductCatalog = Depends(get_catalog)):
    return catalog.list_categories()
