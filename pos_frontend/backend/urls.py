"""
PROJECT URLS

All API routes live under /api/

- /api/operator/...  operator session (open / read / close)
- /api/pos/...       cashier cart operations

Operational maturity:
- /api/health/ (AllowAny) reports local liveness and whether the remote
  commerce API answers.
"""

from __future__ import annotations

import logging

from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from commerce.client import CommerceApiClient
from commerce.exceptions import CommerceApiError

logger = logging.getLogger(__name__)


# ------------------ API ROOT (PUBLIC) ------------------
@extend_schema(
    responses={
        200: {
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "operator": {"type": "object"},
                "docs": {"type": "object"},
                "modules": {"type": "object"},
            },
        }
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": "POS Front End API is running",
            "operator": {
                "session": "/api/operator/session/",
            },
            "docs": {
                "swagger": "/api/docs/",
                "schema": "/api/schema/",
            },
            "modules": {
                "pos": "/api/pos/",
            },
        }
    )


# ------------------ HEALTH CHECK (PUBLIC) ------------------
@extend_schema(
    responses={
        200: {
            "type": "object",
            "properties": {
                "status": {"type": "string"},
                "commerce_api": {"type": "string"},
            },
        },
        503: {
            "type": "object",
            "properties": {
                "status": {"type": "string"},
                "commerce_api": {"type": "string"},
                "error": {"type": "string"},
            },
        },
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Minimal operational endpoint:
    - Confirms app is responding
    - Confirms the remote commerce API answers GET api/health
    """
    try:
        CommerceApiClient.from_settings().send("GET", "api/health")
        return Response({"status": "ok", "commerce_api": "ok"})
    except CommerceApiError as e:
        logger.warning("Commerce API health probe failed", extra={"reason": str(e)})
        return Response(
            {"status": "degraded", "commerce_api": "down", "error": str(e)},
            status=503,
        )


# ------------------ API ROUTES (ALL UNDER /api/) ------------------
api_urlpatterns = [
    # Health check / root
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    # OpenAPI / Swagger
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    # Operator session
    path("operator/", include("operators.urls")),
    # POS
    path("pos/", include("pos.urls")),
]

urlpatterns = [
    # Root convenience: visiting / takes you to Swagger docs
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
