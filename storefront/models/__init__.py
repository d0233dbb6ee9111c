# Import all models to register them with SQLModel
from storefront.models.user import User
from storefront.models.product import Category, Product, ProductRecord
from storefront.models.order import Order, OrderItem, OrderRead, ShippingAddress
from storefront.models.cart import Cart, CartLine, PricedCart, PricedLine

__all__ = [
    "User",
    "Category",
    "Product",
    "ProductRecord",
    "Order",
    "OrderItem",
    "OrderRead",
    "ShippingAddress",
    "Cart",
    "CartLine",
    "PricedCart",
    "PricedLine",
]
