# pos/services/name_cache.py

"""
PRODUCT NAME RECONCILIATION CACHE

The scan response carries product names; the read-cart response does not.
Names are remembered at scan time (keyed by line item id) and looked up
at read time by product id.

Cleared when a cart reaches a terminal state (cancel / finalize).
Kept on suspend: the cart can be reactivated.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pos.models.cart_line import to_optional_id

UNKNOWN_PRODUCT = "Unknown product"


def placeholder_name(product_id: Optional[int]) -> str:
    if product_id is None:
        return UNKNOWN_PRODUCT
    return f"Product #{product_id}"


class ProductNameCache:
    """
    Wraps the session mapping {str(line_item_id): {"name", "product_id"}}.
    Keys are strings so the mapping survives JSON session serialization.
    """

    def __init__(self, entries: Optional[dict] = None):
        self._entries: dict[str, dict[str, Any]] = {}
        for key, value in (entries or {}).items():
            if isinstance(value, dict) and value.get("name"):
                self._entries[str(key)] = {
                    "name": str(value["name"]),
                    "product_id": to_optional_id(value.get("product_id")),
                }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, line_item_id) -> bool:
        return str(line_item_id) in self._entries

    def get(self, line_item_id) -> Optional[dict[str, Any]]:
        entry = self._entries.get(str(line_item_id))
        return dict(entry) if entry else None

    def remember(self, items: Optional[Iterable[dict]]) -> int:
        """Store names from scan response items. Returns how many were stored."""
        stored = 0
        for item in items or []:
            if not isinstance(item, dict):
                continue
            item_id = item.get("item_id")
            name = item.get("product_name")
            if item_id is None or not name:
                continue
            self._entries[str(item_id)] = {
                "name": str(name),
                "product_id": to_optional_id(item.get("product_id")),
            }
            stored += 1
        return stored

    def lookup(self, product_id: Optional[int]) -> Optional[str]:
        # Line item ids differ between the scan and read paths; match on product id.
        if product_id is None:
            return None
        for entry in self._entries.values():
            if entry.get("product_id") == product_id:
                return entry["name"]
        return None

    def display_name(self, product_id: Optional[int]) -> str:
        return self.lookup(product_id) or placeholder_name(product_id)

    def clear(self) -> None:
        self._entries.clear()

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {k: dict(v) for k, v in self._entries.items()}
