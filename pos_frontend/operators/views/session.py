import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from operators.serializers import OpenOperatorSessionSerializer, OperatorSerializer
from pos.services.operator_session import load_operator_session, open_operator_session
from pos.services.session_lock import session_lock
from pos.views.api import first_error_message
from pos.views.permissions import IsPOSOperator

logger = logging.getLogger(__name__)


class OperatorSessionView(APIView):
    """
    POST   open the operator session (token already acquired upstream)
    GET    current operator + cart reference
    DELETE logout: flushes cart reference, name cache and identity
    """

    serializer_class = OperatorSerializer

    def get_permissions(self):
        if self.request.method in ("POST", "DELETE"):
            return [AllowAny()]
        return [IsPOSOperator()]

    @extend_schema(
        request=OpenOperatorSessionSerializer,
        responses={201: OperatorSerializer},
        description="Open an operator session from a pre-acquired API token",
    )
    def post(self, request):
        serializer = OpenOperatorSessionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    "success": False,
                    "error": True,
                    "message": first_error_message(serializer.errors),
                    "code": "VALIDATION_ERROR",
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data

        # New key on login, same as django.contrib.auth.login
        request.session.cycle_key()

        with session_lock(request.session.session_key):
            ctx = open_operator_session(
                request.session,
                token=data["token"],
                user_id=data["user_id"],
                shop_id=data["shop_id"],
                station_id=data.get("station_id"),
                name=data.get("name", ""),
            )

        logger.info(
            "Operator session opened",
            extra={"user_id": ctx.user_id, "shop_id": ctx.shop_id},
        )

        return Response(
            OperatorSerializer(self._operator_payload(ctx)).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        responses={200: OperatorSerializer},
        description="Get the current operator session",
    )
    def get(self, request):
        ctx = load_operator_session(request.session)
        return Response(OperatorSerializer(self._operator_payload(ctx)).data)

    @extend_schema(
        responses={200: dict},
        description="Close the operator session (logout)",
    )
    def delete(self, request):
        ctx = load_operator_session(request.session)
        with session_lock(request.session.session_key):
            request.session.flush()

        logger.info("Operator session closed", extra={"user_id": ctx.user_id})
        return Response({"success": True, "message": "Operator session closed"})

    @staticmethod
    def _operator_payload(ctx) -> dict:
        return {
            **ctx.public_identity(),
            "has_cart": ctx.has_cart,
            "current_cart_id": ctx.current_cart_id,
        }
