# pos/services/cart_orchestrator.py

"""
CART ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Own the lifecycle of the operator's single current cart.
- Translate POS intents (scan, adjust, suspend, cancel, activate, finalize)
  into remote commerce API calls.
- Reconcile remote read responses against the operator session
  (missing product names) and derive totals locally.

Lifecycle:
    NoActiveCart -> Active -> {Suspended, Cancelled, Finalized}
    Suspended -> Active only through activate(cart_id).
    Cancelled / Finalized are terminal: cart reference + name cache cleared.

Hard rules:
- Only the remote API assigns cart ids. A scan's cart_id always overwrites
  the session reference.
- Caller errors (ValidationError, NoActiveCartError) are raised before any
  remote call.
- No retries: cart mutations are not guaranteed idempotent remotely.
- Operations return OperationResult; nothing raises past this class.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from functools import wraps
from typing import Any, Optional

from commerce.client import CommerceApiClient
from commerce.exceptions import CommerceApiError
from pos.models import Cart, CartLine, CartStatus
from pos.models.cart_line import to_decimal, to_int, to_optional_id
from pos.services.exceptions import (
    CartServiceError,
    NoActiveCartError,
    ValidationError,
)
from pos.services.name_cache import UNKNOWN_PRODUCT
from pos.services.operator_session import OperatorSession
from pos.services.results import OperationResult
from pos.services.totals import Totals, calculate_totals

logger = logging.getLogger(__name__)

# Remove is not a separate remote operation: a large negative delta on the
# line-update endpoint, which the remote clamps at zero. True removal
# therefore depends on that remote clamping behaviour.
REMOVE_LINE_DELTA = -999

INCREASE_DELTA = 1
DECREASE_DELTA = -1

FINALIZE_DEFAULTS = {
    "discount": 0,
    "loyalty_points_used": 0,
    "payments": [],
}

STATUS_INACTIVE = "inactive"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class DisplayData:
    has_cart: bool
    cart: Optional[Cart]
    totals: Totals


# ============================================================
# INPUT HELPERS
# ============================================================


def _positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a positive integer")
    if isinstance(value, str):
        value = value.strip()
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a positive integer")
    if n <= 0:
        raise ValidationError(f"{field_name} must be a positive integer")
    return n


def _non_zero_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a non-zero integer")
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a non-zero integer")
    if n == 0:
        raise ValidationError(f"{field_name} must be a non-zero integer")
    return n


def _non_negative_number(value: Any, field_name: str) -> None:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number >= 0")
    try:
        d = Decimal(str(value))
    except Exception:
        raise ValidationError(f"{field_name} must be a number >= 0")
    if not d.is_finite() or d < 0:
        raise ValidationError(f"{field_name} must be a number >= 0")


def _require_cart(ctx: OperatorSession) -> int:
    if ctx.current_cart_id is None:
        raise NoActiveCartError("No active cart")
    return ctx.current_cart_id


def _confirmed(body: Any) -> bool:
    return isinstance(body, dict) and bool(body.get("success"))


def _annotate_scan_items(items: Any) -> tuple[list, list]:
    """
    Returns (annotated raw items, display lines).
    item_total is unit_price x quantity, recomputed here.
    """
    annotated = []
    formatted = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        unit_price = to_decimal(item.get("unit_price"))
        quantity = max(to_int(item.get("quantity")), 0)
        item_total = unit_price * Decimal(quantity)

        annotated.append({**item, "item_total": item_total})
        formatted.append(
            {
                "id": item.get("item_id"),
                "product_id": to_optional_id(item.get("product_id")),
                "product_name": item.get("product_name") or UNKNOWN_PRODUCT,
                "unit_price": unit_price,
                "quantity": quantity,
                "item_total": item_total,
            }
        )
    return annotated, formatted


def cart_operation(name: str):
    """
    Boundary for every public operation: shapes any failure into an
    OperationResult instead of letting it propagate.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, ctx: OperatorSession, *args, **kwargs) -> OperationResult:
            log_extra = {
                "operation": name,
                "user_id": ctx.user_id,
                "cart_id": ctx.current_cart_id,
            }
            try:
                return func(self, ctx, *args, **kwargs)
            except CartServiceError as exc:
                logger.info(
                    "Cart operation refused",
                    extra={**log_extra, "code": exc.code, "reason": exc.message},
                )
                return OperationResult.from_exception(exc)
            except CommerceApiError as exc:
                logger.warning(
                    "Cart operation failed remotely",
                    extra={**log_extra, "reason": str(exc)},
                )
                return OperationResult.from_exception(exc)
            except Exception as exc:
                logger.exception("Cart operation crashed", extra=log_extra)
                return OperationResult.from_exception(exc)

        return wrapper

    return decorator


# ============================================================
# ORCHESTRATOR
# ============================================================


class CartOrchestrator:
    def __init__(self, client, *, tax_rate: Optional[Decimal] = None):
        self.client = client
        self.tax_rate = tax_rate

    @classmethod
    def for_session(cls, ctx: OperatorSession) -> "CartOrchestrator":
        return cls(CommerceApiClient.from_settings(token=ctx.auth_token))

    # -------------------------------------------------
    # Scan
    # -------------------------------------------------

    @cart_operation("scan")
    def scan(
        self,
        ctx: OperatorSession,
        barcode: Any,
        customer_id: Any = None,
        quantity: Any = 1,
    ) -> OperationResult:
        barcode = str(barcode or "").strip()
        if not barcode:
            raise ValidationError("Barcode is required")

        qty = _positive_int(1 if quantity is None else quantity, "quantity")
        customer = None
        if customer_id not in (None, ""):
            customer = _positive_int(customer_id, "customer_id")

        payload = {
            "station_id": ctx.effective_station_id,
            "shop_id": ctx.shop_id,
            "user_id": ctx.user_id,
            "barcode": barcode,
            "customer_id": customer,
            "quantity": qty,
        }

        response = self.client.post("api/cart/scan/", payload)

        if response.get("success") is False:
            return OperationResult.unconfirmed(
                response, default_message="Scan was not accepted"
            )

        cart_id = to_optional_id(response.get("cart_id"))
        if cart_id is not None:
            if ctx.current_cart_id not in (None, cart_id):
                logger.info(
                    "Scan replaced current cart reference",
                    extra={"previous_cart_id": ctx.current_cart_id, "cart_id": cart_id},
                )
            ctx.set_current_cart(cart_id)

        stored = ctx.product_names.remember(response.get("items"))

        data = dict(response)
        if "items" in response:
            data["items"], data["formatted_items"] = _annotate_scan_items(response["items"])

        logger.info(
            "Item scanned",
            extra={"cart_id": ctx.current_cart_id, "quantity": qty, "names_cached": stored},
        )
        return OperationResult.ok(data)

    # -------------------------------------------------
    # Line quantity
    # -------------------------------------------------

    @cart_operation("adjust_quantity")
    def adjust_quantity(
        self, ctx: OperatorSession, line_item_id: Any, delta: Any
    ) -> OperationResult:
        cart_id = _require_cart(ctx)
        item_id = _positive_int(line_item_id, "item_id")
        step = _non_zero_int(delta, "delta")

        response = self.client.patch(
            f"api/cart/items/{item_id}",
            {"cart_id": cart_id, "delta": step},
        )

        logger.info(
            "Cart line adjusted",
            extra={"cart_id": cart_id, "item_id": item_id, "delta": step},
        )
        if response.get("success") is False:
            return OperationResult.unconfirmed(
                response, default_message="Quantity change was not accepted"
            )
        return OperationResult.ok(response)

    def increase(self, ctx: OperatorSession, line_item_id: Any) -> OperationResult:
        return self.adjust_quantity(ctx, line_item_id, INCREASE_DELTA)

    def decrease(self, ctx: OperatorSession, line_item_id: Any) -> OperationResult:
        return self.adjust_quantity(ctx, line_item_id, DECREASE_DELTA)

    def remove(self, ctx: OperatorSession, line_item_id: Any) -> OperationResult:
        return self.adjust_quantity(ctx, line_item_id, REMOVE_LINE_DELTA)

    # -------------------------------------------------
    # Lifecycle
    # -------------------------------------------------

    @cart_operation("suspend")
    def suspend(self, ctx: OperatorSession) -> OperationResult:
        cart_id = _require_cart(ctx)

        response = self.client.patch(
            "api/cart/suspend",
            {"cart_id": cart_id, "user_id": ctx.user_id},
        )

        if not _confirmed(response):
            return OperationResult.unconfirmed(
                response, default_message="Cart could not be suspended"
            )

        # Names stay cached: a suspended cart can be reactivated.
        ctx.clear_current_cart()
        logger.info("Cart suspended", extra={"cart_id": cart_id})
        return OperationResult.ok(response)

    @cart_operation("cancel")
    def cancel(self, ctx: OperatorSession) -> OperationResult:
        cart_id = _require_cart(ctx)

        response = self.client.patch(
            f"api/cart/cancel/{cart_id}",
            {"user_id": ctx.user_id},
        )

        if not _confirmed(response):
            return OperationResult.unconfirmed(
                response, default_message="Cart could not be cancelled"
            )

        ctx.end_cart()
        logger.info("Cart cancelled", extra={"cart_id": cart_id})
        return OperationResult.ok(response)

    @cart_operation("activate")
    def activate(self, ctx: OperatorSession, cart_id: Any) -> OperationResult:
        target = _positive_int(cart_id, "cart_id")

        response = self.client.patch(
            "api/cart/activate",
            {"cart_id": target, "user_id": ctx.user_id},
        )

        if not _confirmed(response):
            return OperationResult.unconfirmed(
                response, default_message="Cart could not be activated"
            )

        previous = ctx.current_cart_id
        ctx.set_current_cart(target)
        logger.info(
            "Cart activated",
            extra={"cart_id": target, "previous_cart_id": previous},
        )
        return OperationResult.ok(response)

    @cart_operation("finalize")
    def finalize(self, ctx: OperatorSession, payment_payload: Any = None) -> OperationResult:
        cart_id = _require_cart(ctx)

        if payment_payload is None:
            payment_payload = {}
        if not isinstance(payment_payload, dict):
            raise ValidationError("Payment data must be an object")

        data = {**FINALIZE_DEFAULTS, **payment_payload}
        data["cart_id"] = cart_id

        payments = data.get("payments")
        if not isinstance(payments, list) or not payments:
            raise ValidationError("Payment information is required")
        if not all(isinstance(p, dict) for p in payments):
            raise ValidationError("Each payment must be an object")

        _non_negative_number(data.get("discount"), "discount")
        _non_negative_number(data.get("loyalty_points_used"), "loyalty_points_used")

        response = self.client.post("api/cart/finalize", data)

        if not _confirmed(response):
            return OperationResult.unconfirmed(
                response, default_message="Sale could not be finalized"
            )

        ctx.end_cart()
        logger.info(
            "Cart finalized",
            extra={"cart_id": cart_id, "payment_count": len(payments)},
        )
        return OperationResult.ok(response)

    # -------------------------------------------------
    # Customers
    # -------------------------------------------------

    @cart_operation("find_customer")
    def find_customer(self, ctx: OperatorSession, identifier: Any) -> OperationResult:
        value = str(identifier or "").strip()
        if not value:
            raise ValidationError("Customer identifier is required")

        response = self.client.post("api/customer/find", {"identifierValue": value})
        return OperationResult.ok(response)

    # -------------------------------------------------
    # Reads (never mutate ctx)
    # -------------------------------------------------

    def has_active_cart(self, ctx: OperatorSession) -> bool:
        return ctx.has_cart

    def _read_cart(self, ctx: OperatorSession, cart_id: int) -> Cart:
        response = self.client.get(f"api/cart/{cart_id}/active-items")
        data = response.get("data")
        if not isinstance(data, dict):
            return Cart(id=cart_id)

        lines = []
        for item in data.get("items") or []:
            if not isinstance(item, dict):
                continue
            if to_int(item.get("quantity")) <= 0:
                # lines reduced to zero are gone
                continue
            name = item.get("product_name") or ctx.product_names.display_name(
                to_optional_id(item.get("product_id"))
            )
            lines.append(CartLine.from_remote(item, product_name=str(name)))

        return Cart(
            id=to_optional_id(data.get("id")) or cart_id,
            status=CartStatus.parse(data.get("status")),
            user_id=to_optional_id(data.get("user_id")),
            shop_id=to_optional_id(data.get("shop_id")),
            created_at=data.get("created_at"),
            items=tuple(lines),
        )

    def _display(self, ctx: OperatorSession, cart_id: Optional[int]) -> DisplayData:
        if cart_id is None:
            return DisplayData(has_cart=False, cart=None, totals=Totals.zero())

        cart = self._read_cart(ctx, cart_id)
        return DisplayData(
            has_cart=True,
            cart=cart,
            totals=calculate_totals(cart.items, tax_rate=self.tax_rate),
        )

    @cart_operation("display")
    def get_display_data(self, ctx: OperatorSession) -> OperationResult:
        return OperationResult.ok(self._display(ctx, ctx.current_cart_id))

    @cart_operation("get_cart")
    def get_cart(self, ctx: OperatorSession, cart_id: Any = None) -> OperationResult:
        if cart_id in (None, ""):
            target = _require_cart(ctx)
        else:
            target = _positive_int(cart_id, "cart_id")
        return OperationResult.ok(self._display(ctx, target))

    @cart_operation("status")
    def get_cart_status(self, ctx: OperatorSession) -> OperationResult:
        cart_id = ctx.current_cart_id
        if cart_id is None:
            return OperationResult.ok({"cart_id": None, "status": STATUS_INACTIVE})

        try:
            body = self.client.get(f"api/cart/{cart_id}/active-items")
        except CommerceApiError as exc:
            logger.warning(
                "Cart status read failed",
                extra={"cart_id": cart_id, "reason": str(exc)},
            )
            return OperationResult.ok({"cart_id": cart_id, "status": STATUS_ERROR})

        data = body.get("data")
        raw = data.get("status") if isinstance(data, dict) else None
        status = str(raw).strip() if raw else CartStatus.UNKNOWN.value
        return OperationResult.ok({"cart_id": cart_id, "status": status})
