# pos/services/totals.py

"""
CART TOTALS

Pure functions, no I/O. Derived on every read, never persisted.

- subtotal   = sum(unit_price x quantity)
- discount   = sum(line_discount)
- tax        = subtotal x tax_rate
- total      = subtotal + tax - discount
- item_count = sum(quantity)

Each money figure is quantized to 2dp (ROUND_HALF_UP) before total is
formed, so total == subtotal + tax - discount holds exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.conf import settings

from pos.models import CartLine

TWOPLACES = Decimal("0.01")
DEFAULT_TAX_RATE = Decimal("0.20")


def money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def configured_tax_rate() -> Decimal:
    raw = getattr(settings, "POS_TAX_RATE", None)
    if raw is None or raw == "":
        return DEFAULT_TAX_RATE
    return Decimal(str(raw))


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    item_count: int = 0

    @classmethod
    def zero(cls) -> "Totals":
        return cls()


def calculate_totals(
    lines: Optional[Iterable[CartLine]],
    *,
    tax_rate: Optional[Decimal] = None,
) -> Totals:
    items = list(lines or [])
    if not items:
        return Totals.zero()

    rate = configured_tax_rate() if tax_rate is None else Decimal(str(tax_rate))

    subtotal = money(sum((line.item_total for line in items), Decimal("0")))
    discount = money(sum((line.line_discount for line in items), Decimal("0")))
    tax = money(subtotal * rate)

    return Totals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=subtotal + tax - discount,
        item_count=sum(int(line.quantity) for line in items),
    )
