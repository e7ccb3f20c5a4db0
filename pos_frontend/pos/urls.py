"""
PATH: pos/urls.py

POS URLS

Purpose:
- POS health check
- Scan (creates / extends the remote cart)
- Current cart display + status
- Cart line quantity changes (signed deltas)
- Cart lifecycle: suspend / cancel / activate / finalize
- Customer lookup
"""

from django.urls import path

from pos.views.api import (
    POSHealthCheckView,
    ScanItemView,
    ActiveCartView,
    CartStatusView,
    CartDetailView,
    IncreaseCartItemView,
    DecreaseCartItemView,
    RemoveCartItemView,
    AdjustCartItemView,
    SuspendCartView,
    CancelCartView,
    ActivateCartView,
    FinalizeCartView,
    FindCustomerView,
)

app_name = "pos"

urlpatterns = [
    path("health/", POSHealthCheckView.as_view(), name="health"),

    path("scan/", ScanItemView.as_view(), name="scan"),

    path("cart/", ActiveCartView.as_view(), name="active-cart"),
    path("cart/status/", CartStatusView.as_view(), name="cart-status"),
    path("carts/<int:cart_id>/", CartDetailView.as_view(), name="cart-detail"),

    path("cart/items/increase/", IncreaseCartItemView.as_view(), name="increase-cart-item"),
    path("cart/items/decrease/", DecreaseCartItemView.as_view(), name="decrease-cart-item"),
    path("cart/items/remove/", RemoveCartItemView.as_view(), name="remove-cart-item"),
    path("cart/items/adjust/", AdjustCartItemView.as_view(), name="adjust-cart-item"),

    path("cart/suspend/", SuspendCartView.as_view(), name="suspend-cart"),
    path("cart/cancel/", CancelCartView.as_view(), name="cancel-cart"),
    path("cart/activate/", ActivateCartView.as_view(), name="activate-cart"),
    path("cart/finalize/", FinalizeCartView.as_view(), name="finalize-cart"),

    path("customers/find/", FindCustomerView.as_view(), name="find-customer"),
]
