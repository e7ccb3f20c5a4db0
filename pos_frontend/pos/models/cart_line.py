# pos/models/cart_line.py

"""
CART LINE SNAPSHOT

Purpose:
- Immutable read model of one remote cart line.
- item_total is derived locally (unit_price x quantity); a remote
  item_total is never read.

Rules:
- unit_price and line_discount are Decimals >= 0 (bad values coerce to 0).
- quantity is an integer >= 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        return ZERO
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not d.is_finite() or d < 0:
        return ZERO
    return d


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError, TypeError, OverflowError):
        return default


def to_optional_id(value: Any) -> Optional[int]:
    n = to_int(value, default=0)
    return n if n > 0 else None


@dataclass(frozen=True)
class CartLine:
    line_item_id: int
    product_id: Optional[int]
    product_name: str
    unit_price: Decimal = ZERO
    quantity: int = 0
    line_discount: Decimal = ZERO
    shop_id: Optional[int] = None
    added_at: Optional[str] = None

    @property
    def item_total(self) -> Decimal:
        return self.unit_price * Decimal(self.quantity)

    @classmethod
    def from_remote(cls, item: dict, *, product_name: str) -> "CartLine":
        """
        Build from a read-cart line:
        {id, product_id, unit_price, quantity, shop_id, discount, added_at}
        """
        return cls(
            line_item_id=to_int(item.get("id")),
            product_id=to_optional_id(item.get("product_id")),
            product_name=product_name,
            unit_price=to_decimal(item.get("unit_price")),
            quantity=max(to_int(item.get("quantity")), 0),
            line_discount=to_decimal(item.get("discount")),
            shop_id=to_optional_id(item.get("shop_id")),
            added_at=item.get("added_at"),
        )
