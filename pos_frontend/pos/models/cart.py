"""
PATH: pos/models/cart.py

CART SNAPSHOT

Purpose:
- Immutable read model of a remote-owned cart.
- Built once per read from the active-items response, never cached.

Rules:
- Only the remote API assigns cart ids.
- Line order is the remote-reported order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .cart_line import CartLine


class CartStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
    FINALIZED = "finalized"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw) -> "CartStatus":
        value = str(raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Cart:
    id: int
    status: CartStatus = CartStatus.UNKNOWN
    user_id: Optional[int] = None
    shop_id: Optional[int] = None
    created_at: Optional[str] = None
    items: tuple[CartLine, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)
