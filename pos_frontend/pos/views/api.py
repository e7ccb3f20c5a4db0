# pos/views/api.py

"""
POS API VIEWS

Purpose:
- Thin adapters: validate input, run ONE CartOrchestrator operation,
  serialize the OperationResult.
- Operator session state (current cart id, product name cache) is loaded
  from and persisted to the Django session around each operation, under a
  per-session lock.

Hard rules:
- Failures always render as {"success": false, "error": true, "message", "code"}
  (400 caller errors, 500 remote/unexpected).
- Money is derived server-side from the remote cart snapshot.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from pos.serializers import DisplayDataSerializer
from pos.services.cart_orchestrator import CartOrchestrator
from pos.services.operator_session import (
    load_operator_session,
    persist_operator_session,
)
from pos.services.results import OperationResult
from pos.services.session_lock import locked_session
from pos.views.permissions import IsPOSOperator

# =====================================================
# SWAGGER INPUT SERIALIZERS
# =====================================================


class ScanInputSerializer(serializers.Serializer):
    # blank barcodes are rejected by the orchestrator (no remote call)
    barcode = serializers.CharField(required=False, allow_blank=True, default="")
    customer_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)


class CartItemInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField(min_value=1)


class AdjustCartItemInputSerializer(serializers.Serializer):
    item_id = serializers.IntegerField(min_value=1)
    delta = serializers.IntegerField()

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("delta must be a non-zero integer")
        return value


class ActivateCartInputSerializer(serializers.Serializer):
    cart_id = serializers.IntegerField(min_value=1)


class FinalizeCartInputSerializer(serializers.Serializer):
    # payment legs are forwarded as-is; the remote owns their shape
    payments = serializers.ListField(child=serializers.DictField(), allow_empty=False)
    discount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    loyalty_points_used = serializers.IntegerField(min_value=0, required=False)


class FindCustomerInputSerializer(serializers.Serializer):
    identifierValue = serializers.CharField(required=False, allow_blank=True, default="")


# =====================================================
# API ERROR NORMALIZATION
# =====================================================


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"success": False, "error": True, "message": message, "code": code},
        status=http_status,
    )


def first_error_message(errors) -> str:
    """
    "field: message" for the first error, walking nested dict/list errors
    (e.g. {"payments": {0: ["..."]}}) down to the first string.
    """
    for field, detail in errors.items():
        while isinstance(detail, (dict, list)) and detail:
            detail = next(iter(detail.values())) if isinstance(detail, dict) else detail[0]
        if isinstance(detail, (dict, list)):
            continue
        return f"{field}: {detail}"
    return "Invalid input"


def invalid_input_response(serializer) -> Response:
    message = first_error_message(serializer.errors)
    return error_response(
        code="VALIDATION_ERROR",
        message=message,
        http_status=status.HTTP_400_BAD_REQUEST,
    )


def result_response(result: OperationResult) -> Response:
    return Response(result.to_payload(), status=result.status_code)


def _request_payload(request) -> dict:
    return request.data if isinstance(request.data, dict) else {}


# =====================================================
# HELPERS
# =====================================================


def build_orchestrator(ctx) -> CartOrchestrator:
    return CartOrchestrator.for_session(ctx)


def run_cart_operation(request, operation) -> OperationResult:
    """
    Load the operator context, run one orchestrator call, persist the context.
    `operation` receives (orchestrator, ctx). The whole cycle runs on a fresh
    session store under the per-session lock and is saved before release.
    """
    with locked_session(request.session) as session:
        ctx = load_operator_session(session)
        result = operation(build_orchestrator(ctx), ctx)
        persist_operator_session(session, ctx)
    return result


class OperatorCartView(APIView):
    permission_classes = [IsPOSOperator]


# =====================================================
# POS API VIEWS
# =====================================================


class POSHealthCheckView(OperatorCartView):
    serializer_class = None

    @extend_schema(
        responses={200: dict},
        description="POS module health check",
    )
    def get(self, request):
        ctx = load_operator_session(request.session)
        return Response(
            {
                "status": "ok",
                "module": "pos",
                "operator": ctx.public_identity(),
                "has_cart": ctx.has_cart,
            }
        )


class ScanItemView(OperatorCartView):
    """
    Scan a barcode. The remote decides whether this creates a cart or adds
    to the current one; the returned cart_id becomes the session's cart.
    """

    @extend_schema(
        request=ScanInputSerializer,
        responses={200: dict},
        description="Scan an item (creates the cart if the remote starts a new one)",
        examples=[
            OpenApiExample(
                "Scan two units",
                value={"barcode": "3560070894222", "customer_id": None, "quantity": 2},
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = ScanInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer)

        data = serializer.validated_data
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.scan(
                ctx,
                data.get("barcode", ""),
                customer_id=data.get("customer_id"),
                quantity=data.get("quantity", 1),
            ),
        )
        return result_response(result)


class ActiveCartView(OperatorCartView):
    """
    Current cart with reconciled product names and derived totals.
    """

    serializer_class = DisplayDataSerializer

    @extend_schema(
        responses={200: DisplayDataSerializer},
        description="Get the operator's current cart (has_cart=false when none)",
    )
    def get(self, request):
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.get_display_data(ctx),
        )
        if result.is_error:
            return result_response(result)

        return Response(
            {"success": True, **DisplayDataSerializer(result.data).data},
            status=status.HTTP_200_OK,
        )


class CartDetailView(OperatorCartView):
    """
    Read any cart by id (e.g. a suspended cart before activating it).
    Does not change the session's current cart.
    """

    serializer_class = DisplayDataSerializer

    @extend_schema(
        responses={200: DisplayDataSerializer},
        description="Get a cart by id with reconciled names and totals",
    )
    def get(self, request, cart_id: int):
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.get_cart(ctx, cart_id),
        )
        if result.is_error:
            return result_response(result)

        return Response(
            {"success": True, **DisplayDataSerializer(result.data).data},
            status=status.HTTP_200_OK,
        )


class CartStatusView(OperatorCartView):
    @extend_schema(
        responses={200: dict},
        description="Current cart status: inactive | active | suspended | ... | unknown | error",
    )
    def get(self, request):
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.get_cart_status(ctx),
        )
        return result_response(result)


class _CartItemActionView(OperatorCartView):
    action_name = ""

    def _run(self, request):
        serializer = CartItemInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer)

        item_id = serializer.validated_data["item_id"]
        action = self.action_name
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: getattr(orchestrator, action)(ctx, item_id),
        )
        return result_response(result)


class IncreaseCartItemView(_CartItemActionView):
    action_name = "increase"

    @extend_schema(
        request=CartItemInputSerializer,
        responses={200: dict},
        description="Increase a cart line by one unit",
    )
    def patch(self, request):
        return self._run(request)


class DecreaseCartItemView(_CartItemActionView):
    action_name = "decrease"

    @extend_schema(
        request=CartItemInputSerializer,
        responses={200: dict},
        description="Decrease a cart line by one unit",
    )
    def patch(self, request):
        return self._run(request)


class RemoveCartItemView(_CartItemActionView):
    action_name = "remove"

    @extend_schema(
        request=CartItemInputSerializer,
        responses={200: dict},
        description="Remove a cart line (large negative delta, clamped to zero remotely)",
    )
    def delete(self, request):
        return self._run(request)


class AdjustCartItemView(OperatorCartView):
    @extend_schema(
        request=AdjustCartItemInputSerializer,
        responses={200: dict},
        description="Change a cart line quantity by a signed delta",
    )
    def patch(self, request):
        serializer = AdjustCartItemInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer)

        data = serializer.validated_data
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.adjust_quantity(
                ctx, data["item_id"], data["delta"]
            ),
        )
        return result_response(result)


class SuspendCartView(OperatorCartView):
    @extend_schema(
        request=None,
        responses={200: dict},
        description="Suspend the current cart (reactivate later by id)",
    )
    def post(self, request):
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.suspend(ctx),
        )
        return result_response(result)


class CancelCartView(OperatorCartView):
    @extend_schema(
        request=None,
        responses={200: dict},
        description="Cancel the current cart (terminal)",
    )
    def post(self, request):
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.cancel(ctx),
        )
        return result_response(result)


class ActivateCartView(OperatorCartView):
    @extend_schema(
        request=ActivateCartInputSerializer,
        responses={200: dict},
        description="Reactivate a suspended cart and make it the current cart",
    )
    def post(self, request):
        serializer = ActivateCartInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer)

        cart_id = serializer.validated_data["cart_id"]
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.activate(ctx, cart_id),
        )
        return result_response(result)


class FinalizeCartView(OperatorCartView):
    @extend_schema(
        request=FinalizeCartInputSerializer,
        responses={200: dict},
        description="Finalize the sale for the current cart (terminal)",
        examples=[
            OpenApiExample(
                "Split payment",
                value={
                    "discount": 0,
                    "loyalty_points_used": 0,
                    "payments": [
                        {"method": "cash", "amount": "20.00"},
                        {"method": "card", "amount": "3.98"},
                    ],
                },
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        # Cart presence is checked before payment data, like the orchestrator.
        if not load_operator_session(request.session).has_cart:
            return error_response(
                code="NO_ACTIVE_CART",
                message="No active cart to finalize",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        serializer = FinalizeCartInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer)

        # Forward the caller's JSON as-is; validated copy has Decimals.
        payload = dict(_request_payload(request))
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.finalize(ctx, payload),
        )
        return result_response(result)


class FindCustomerView(OperatorCartView):
    @extend_schema(
        request=FindCustomerInputSerializer,
        responses={200: dict},
        description="Look up a customer by identifier (card number, phone, email, ...)",
    )
    def post(self, request):
        serializer = FindCustomerInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input_response(serializer)

        identifier = serializer.validated_data.get("identifierValue", "")
        result = run_cart_operation(
            request,
            lambda orchestrator, ctx: orchestrator.find_customer(ctx, identifier),
        )
        return result_response(result)
