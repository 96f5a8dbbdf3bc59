# ------ storefront/model/__init__.py ------

from .user import User
from .product import Product
from .cart import Cart, CartItem
from .stored_cart import StoredCart
from .order import Order, OrderLine

__all__ = [
    "User",
    "Product",
    "Cart",
    "CartItem",
    "StoredCart",
    "Order",
    "OrderLine",
]
