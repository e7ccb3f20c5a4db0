from .cart import Cart, CartStatus
from .cart_line import CartLine

__all__ = [
    "Cart",
    "CartLine",
    "CartStatus",
]
