# pos/services/operator_session.py

"""
OPERATOR SESSION CONTEXT

Explicit context object handed to every CartOrchestrator call.
The request layer loads it from the Django session and persists it back;
the orchestrator never touches request.session directly.

Django session keys:
- "operator":        {"token", "user_id", "shop_id", "station_id", "name"}
- "current_cart_id": int
- "product_names":   {str(line_item_id): {"name", "product_id"}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, MutableMapping, Optional

from django.conf import settings

from pos.models.cart_line import to_optional_id
from pos.services.name_cache import ProductNameCache

OPERATOR_KEY = "operator"
CURRENT_CART_KEY = "current_cart_id"
PRODUCT_NAMES_KEY = "product_names"


def _default_station_id() -> int:
    return int(getattr(settings, "POS_DEFAULT_STATION_ID", 1) or 1)


@dataclass
class OperatorSession:
    auth_token: str = ""
    user_id: Optional[int] = None
    shop_id: Optional[int] = None
    station_id: Optional[int] = None
    name: str = ""
    current_cart_id: Optional[int] = None
    product_names: ProductNameCache = field(default_factory=ProductNameCache)

    # -------------------------------------------------
    # Identity
    # -------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token)

    @property
    def effective_station_id(self) -> int:
        return self.station_id or self.shop_id or _default_station_id()

    def public_identity(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "shop_id": self.shop_id,
            "station_id": self.effective_station_id,
            "name": self.name,
        }

    # -------------------------------------------------
    # Current cart reference
    # -------------------------------------------------

    @property
    def has_cart(self) -> bool:
        return self.current_cart_id is not None

    def set_current_cart(self, cart_id: int) -> None:
        self.current_cart_id = int(cart_id)

    def clear_current_cart(self) -> None:
        self.current_cart_id = None

    def end_cart(self) -> None:
        """Terminal state: drop the cart reference and its cached names."""
        self.current_cart_id = None
        self.product_names.clear()


def load_operator_session(session: MutableMapping) -> OperatorSession:
    operator = session.get(OPERATOR_KEY) or {}
    if not isinstance(operator, dict):
        operator = {}

    return OperatorSession(
        auth_token=str(operator.get("token") or ""),
        user_id=to_optional_id(operator.get("user_id")),
        shop_id=to_optional_id(operator.get("shop_id")),
        station_id=to_optional_id(operator.get("station_id")),
        name=str(operator.get("name") or ""),
        current_cart_id=to_optional_id(session.get(CURRENT_CART_KEY)),
        product_names=ProductNameCache(session.get(PRODUCT_NAMES_KEY) or {}),
    )


def persist_operator_session(session: MutableMapping, ctx: OperatorSession) -> None:
    """
    Write cart state back. Values are reassigned (not mutated in place)
    so Django marks the session as modified.
    """
    if ctx.current_cart_id is None:
        session.pop(CURRENT_CART_KEY, None)
    else:
        session[CURRENT_CART_KEY] = int(ctx.current_cart_id)

    names = ctx.product_names.as_dict()
    if names:
        session[PRODUCT_NAMES_KEY] = names
    else:
        session.pop(PRODUCT_NAMES_KEY, None)


def open_operator_session(
    session: MutableMapping,
    *,
    token: str,
    user_id: int,
    shop_id: int,
    station_id: Optional[int] = None,
    name: str = "",
) -> OperatorSession:
    """Store a pre-acquired token + identity. Any previous cart state is dropped."""
    session[OPERATOR_KEY] = {
        "token": str(token).strip(),
        "user_id": int(user_id),
        "shop_id": int(shop_id),
        "station_id": int(station_id) if station_id else None,
        "name": str(name or "").strip(),
    }
    session.pop(CURRENT_CART_KEY, None)
    session.pop(PRODUCT_NAMES_KEY, None)
    return load_operator_session(session)
