# pos/tests/test_views.py

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib.sessions.backends.db import SessionStore
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from commerce.exceptions import RemoteUnavailable
from pos.services.cart_orchestrator import REMOVE_LINE_DELTA, CartOrchestrator
from pos.services.operator_session import CURRENT_CART_KEY, PRODUCT_NAMES_KEY
from pos.tests.fakes import FakeCommerceClient
from pos.views.api import run_cart_operation

SCAN_RESPONSE = {
    "success": True,
    "cart_id": 7,
    "items": [
        {
            "item_id": 1,
            "product_id": 10,
            "product_name": "Widget",
            "unit_price": "9.99",
            "quantity": 2,
        }
    ],
}

ACTIVE_ITEMS = {
    "data": {
        "id": 7,
        "status": "active",
        "user_id": 2,
        "shop_id": 3,
        "items": [{"id": 31, "product_id": 10, "unit_price": "9.99", "quantity": 2}],
    }
}

PAYMENTS = [{"method": "cash", "amount": "23.98"}]


class POSApiTestCase(TestCase):
    """
    Runs the real views and orchestrator against a scripted commerce API.
    The operator session is opened through the public endpoint.
    """

    def setUp(self):
        self.client = APIClient()
        self.remote = FakeCommerceClient()

        patcher = mock.patch(
            "pos.views.api.build_orchestrator",
            side_effect=lambda ctx: CartOrchestrator(self.remote, tax_rate=Decimal("0.20")),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def open_session(self, **overrides):
        payload = {"token": "api-token", "user_id": 2, "shop_id": 3, "name": "Till 1"}
        payload.update(overrides)
        res = self.client.post(reverse("operators:session"), payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        return res

    def set_cart(self, cart_id=7):
        session = self.client.session
        session[CURRENT_CART_KEY] = cart_id
        session.save()

    def scan(self, barcode="3560070894222", **extra):
        self.remote.script("POST", "api/cart/scan/", SCAN_RESPONSE)
        return self.client.post(
            reverse("pos:scan"), {"barcode": barcode, **extra}, format="json"
        )

    def assertError(self, res, http_status, code):
        self.assertEqual(res.status_code, http_status, res.data)
        self.assertFalse(res.data["success"])
        self.assertTrue(res.data["error"])
        self.assertEqual(res.data["code"], code)


# -----------------------------
# Access
# -----------------------------


class AccessTests(POSApiTestCase):
    def test_cart_endpoints_require_operator_session(self):
        for url in (reverse("pos:active-cart"), reverse("pos:cart-status"), reverse("pos:health")):
            with self.subTest(url=url):
                res = self.client.get(url)
                self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.remote.calls, [])

    def test_pos_health(self):
        self.open_session(station_id=4)

        res = self.client.get(reverse("pos:health"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["operator"]["station_id"], 4)
        self.assertFalse(res.data["has_cart"])


# -----------------------------
# Scan + display
# -----------------------------


class ScanApiTests(POSApiTestCase):
    def setUp(self):
        super().setUp()
        self.open_session()

    def test_scan_starts_cart_in_session(self):
        res = self.scan(quantity=2)

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["cart_id"], 7)
        self.assertEqual(res.data["items"][0]["item_total"], Decimal("19.98"))

        session = self.client.session
        self.assertEqual(session[CURRENT_CART_KEY], 7)
        self.assertEqual(session[PRODUCT_NAMES_KEY]["1"]["name"], "Widget")

        _, _, body = self.remote.calls[0]
        self.assertEqual(body["user_id"], 2)
        self.assertEqual(body["shop_id"], 3)
        self.assertEqual(body["quantity"], 2)

    def test_blank_barcode_is_rejected(self):
        res = self.client.post(reverse("pos:scan"), {"barcode": "  "}, format="json")

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
        self.assertEqual(self.remote.calls, [])

    def test_bad_quantity_is_rejected_by_input_validation(self):
        res = self.client.post(
            reverse("pos:scan"), {"barcode": "123", "quantity": 0}, format="json"
        )

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
        self.assertTrue(res.data["message"].startswith("quantity"))

    def test_remote_down_is_a_500(self):
        self.remote.script("POST", "api/cart/scan/", RemoteUnavailable("timed out"))

        res = self.client.post(reverse("pos:scan"), {"barcode": "123"}, format="json")

        self.assertError(res, status.HTTP_500_INTERNAL_SERVER_ERROR, "REMOTE_UNAVAILABLE")
        self.assertNotIn(CURRENT_CART_KEY, self.client.session)

    def test_empty_cart_display(self):
        res = self.client.get(reverse("pos:active-cart"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["success"])
        self.assertFalse(res.data["has_cart"])
        self.assertIsNone(res.data["cart"])
        self.assertEqual(res.data["totals"]["total"], "0.00")
        self.assertEqual(res.data["totals"]["item_count"], 0)

    def test_display_after_scan(self):
        self.scan()
        self.remote.script("GET", "api/cart/7/active-items", ACTIVE_ITEMS)

        res = self.client.get(reverse("pos:active-cart"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["has_cart"])
        line = res.data["cart"]["items"][0]
        self.assertEqual(line["product_name"], "Widget")
        self.assertEqual(line["item_total"], "19.98")
        self.assertEqual(res.data["cart"]["status"], "active")
        self.assertFalse(res.data["cart"]["is_empty"])
        self.assertEqual(res.data["totals"]["subtotal"], "19.98")
        self.assertEqual(res.data["totals"]["tax"], "4.00")
        self.assertEqual(res.data["totals"]["total"], "23.98")

    def test_cart_detail_reads_another_cart(self):
        self.set_cart(7)
        self.remote.script(
            "GET",
            "api/cart/12/active-items",
            {"data": {"id": 12, "status": "suspended", "items": []}},
        )

        res = self.client.get(reverse("pos:cart-detail", kwargs={"cart_id": 12}))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["cart"]["id"], 12)
        self.assertEqual(res.data["cart"]["status"], "suspended")
        self.assertTrue(res.data["cart"]["is_empty"])
        self.assertEqual(self.client.session[CURRENT_CART_KEY], 7)

    def test_cart_status(self):
        res = self.client.get(reverse("pos:cart-status"))
        self.assertEqual(res.data, {"success": True, "cart_id": None, "status": "inactive"})

        self.set_cart(7)
        self.remote.script("GET", "api/cart/7/active-items", ACTIVE_ITEMS)
        res = self.client.get(reverse("pos:cart-status"))
        self.assertEqual(res.data["status"], "active")


# -----------------------------
# Line changes
# -----------------------------


class CartItemApiTests(POSApiTestCase):
    def setUp(self):
        super().setUp()
        self.open_session()

    def test_line_change_without_cart(self):
        res = self.client.patch(
            reverse("pos:increase-cart-item"), {"item_id": 31}, format="json"
        )

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "NO_ACTIVE_CART")
        self.assertEqual(self.remote.calls, [])

    def test_increase_decrease_remove(self):
        self.set_cart(7)
        self.remote.script("PATCH", "api/cart/items/31", {"success": True})

        self.client.patch(reverse("pos:increase-cart-item"), {"item_id": 31}, format="json")
        self.client.patch(reverse("pos:decrease-cart-item"), {"item_id": 31}, format="json")
        res = self.client.delete(
            reverse("pos:remove-cart-item"), {"item_id": 31}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [body["delta"] for _, _, body in self.remote.calls],
            [1, -1, REMOVE_LINE_DELTA],
        )

    def test_adjust_rejects_zero_delta(self):
        self.set_cart(7)

        res = self.client.patch(
            reverse("pos:adjust-cart-item"), {"item_id": 31, "delta": 0}, format="json"
        )

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")

    def test_adjust_forwards_delta(self):
        self.set_cart(7)
        self.remote.script("PATCH", "api/cart/items/31", {"success": True})

        res = self.client.patch(
            reverse("pos:adjust-cart-item"), {"item_id": 31, "delta": 3}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(self.remote.calls[0][2], {"cart_id": 7, "delta": 3})


# -----------------------------
# Lifecycle
# -----------------------------


class CartLifecycleApiTests(POSApiTestCase):
    def setUp(self):
        super().setUp()
        self.open_session()
        self.scan()
        self.remote.calls.clear()

    def test_suspend_keeps_names(self):
        self.remote.script("PATCH", "api/cart/suspend", {"success": True})

        res = self.client.post(reverse("pos:suspend-cart"), format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["success"])
        session = self.client.session
        self.assertNotIn(CURRENT_CART_KEY, session)
        self.assertIn(PRODUCT_NAMES_KEY, session)

    def test_unconfirmed_suspend_keeps_cart(self):
        self.remote.script("PATCH", "api/cart/suspend", {"success": False, "message": "Busy"})

        res = self.client.post(reverse("pos:suspend-cart"), format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["message"], "Busy")
        self.assertEqual(self.client.session[CURRENT_CART_KEY], 7)

    def test_cancel_clears_cart_state(self):
        self.remote.script("PATCH", "api/cart/cancel/7", {"success": True})

        res = self.client.post(reverse("pos:cancel-cart"), format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        session = self.client.session
        self.assertNotIn(CURRENT_CART_KEY, session)
        self.assertNotIn(PRODUCT_NAMES_KEY, session)

    def test_activate_switches_cart(self):
        self.remote.script("PATCH", "api/cart/activate", {"success": True})

        res = self.client.post(reverse("pos:activate-cart"), {"cart_id": 12}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.session[CURRENT_CART_KEY], 12)
        self.assertEqual(self.remote.calls[0][2], {"cart_id": 12, "user_id": 2})

    def test_finalize_requires_payments(self):
        res = self.client.post(
            reverse("pos:finalize-cart"), {"payments": []}, format="json"
        )

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
        self.assertEqual(self.remote.calls, [])
        self.assertEqual(self.client.session[CURRENT_CART_KEY], 7)

    def test_finalize_clears_cart_state(self):
        self.remote.script("POST", "api/cart/finalize", {"success": True, "sale_id": 55})

        res = self.client.post(
            reverse("pos:finalize-cart"), {"payments": PAYMENTS}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["sale_id"], 55)
        _, path, body = self.remote.calls[0]
        self.assertEqual(path, "api/cart/finalize")
        self.assertEqual(body["cart_id"], 7)
        self.assertEqual(body["payments"], PAYMENTS)

        session = self.client.session
        self.assertNotIn(CURRENT_CART_KEY, session)
        self.assertNotIn(PRODUCT_NAMES_KEY, session)


class FinalizeWithoutCartTests(POSApiTestCase):
    def test_no_cart_is_reported_before_payment_errors(self):
        self.open_session()

        res = self.client.post(reverse("pos:finalize-cart"), {}, format="json")

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "NO_ACTIVE_CART")


# -----------------------------
# Customers
# -----------------------------


class FindCustomerApiTests(POSApiTestCase):
    def setUp(self):
        super().setUp()
        self.open_session()

    def test_find_customer(self):
        self.remote.script(
            "POST", "api/customer/find", {"success": True, "customer": {"id": 4, "name": "Ana"}}
        )

        res = self.client.post(
            reverse("pos:find-customer"), {"identifierValue": "CARD-77"}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["customer"]["id"], 4)

    def test_blank_identifier(self):
        res = self.client.post(
            reverse("pos:find-customer"), {"identifierValue": ""}, format="json"
        )
        self.assertError(res, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")


class CsrfTests(POSApiTestCase):
    def test_operator_writes_need_csrf_token(self):
        self.client = APIClient(enforce_csrf_checks=True)
        self.open_session()

        res = self.client.post(reverse("pos:scan"), {"barcode": "123"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.remote.calls, [])


class FinalizePaymentShapeTests(POSApiTestCase):
    def setUp(self):
        super().setUp()
        self.open_session()
        self.set_cart(7)

    def test_payment_legs_are_forwarded_in_any_shape(self):
        self.remote.script("POST", "api/cart/finalize", {"success": True})
        payments = [{"payment_method_id": 1, "amount": 10}]

        res = self.client.post(
            reverse("pos:finalize-cart"), {"payments": payments}, format="json"
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(self.remote.calls[0][2]["payments"], payments)
        self.assertNotIn(CURRENT_CART_KEY, self.client.session)

    def test_nested_error_message_is_readable(self):
        res = self.client.post(
            reverse("pos:finalize-cart"), {"payments": ["cash"]}, format="json"
        )

        self.assertError(res, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR")
        self.assertTrue(
            res.data["message"].startswith("payments: Expected a dictionary"),
            res.data["message"],
        )
        self.assertNotIn("ErrorDetail", res.data["message"])
        self.assertEqual(self.remote.calls, [])


# -----------------------------
# Per-session serialization
# -----------------------------


class SessionSerializationTests(POSApiTestCase):
    """
    Business rule:
    Two requests on one session must not lose each other's cart state, even
    when both loaded the session before running.
    """

    def setUp(self):
        super().setUp()
        self.open_session()
        self.session_key = self.client.session.session_key

    def _request(self):
        store = SessionStore(self.session_key)
        # authentication + permissions read the session before the view runs
        store.get("operator")
        return SimpleNamespace(session=store)

    def test_second_request_sees_first_requests_cart(self):
        self.remote.script("POST", "api/cart/scan/", SCAN_RESPONSE)
        first = self._request()
        second = self._request()

        run_cart_operation(first, lambda orchestrator, ctx: orchestrator.scan(ctx, "123"))

        seen = {}

        def read_status(orchestrator, ctx):
            seen["cart_id"] = ctx.current_cart_id
            seen["names"] = len(ctx.product_names)
            return orchestrator.get_cart_status(ctx)

        run_cart_operation(second, read_status)

        self.assertEqual(seen, {"cart_id": 7, "names": 1})
        stored = SessionStore(self.session_key)
        self.assertEqual(stored[CURRENT_CART_KEY], 7)
        self.assertEqual(stored[PRODUCT_NAMES_KEY]["1"]["name"], "Widget")

    def test_state_is_saved_before_the_request_finishes(self):
        self.remote.script("PATCH", "api/cart/activate", {"success": True})
        request = self._request()

        run_cart_operation(request, lambda orchestrator, ctx: orchestrator.activate(ctx, 12))

        self.assertEqual(SessionStore(self.session_key)[CURRENT_CART_KEY], 12)
        # the request's own store was not written, so the middleware has nothing to save
        self.assertFalse(request.session.modified)
