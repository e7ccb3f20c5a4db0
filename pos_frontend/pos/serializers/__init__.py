from .cart import CartSerializer, DisplayDataSerializer, TotalsSerializer
from .cart_line import CartLineSerializer

__all__ = [
    "CartSerializer",
    "CartLineSerializer",
    "DisplayDataSerializer",
    "TotalsSerializer",
]
