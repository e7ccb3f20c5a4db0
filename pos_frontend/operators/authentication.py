"""
PATH: operators/authentication.py

AUTHENTICATION: operator identity stored in the Django session

Rules:
- An operator is authenticated when the session holds an "operator" entry
  with a non-empty API token.
- CSRF is enforced exactly like DRF's SessionAuthentication: the state lives
  in a cookie-bound session.
- No database lookup: the remote commerce API owns operator accounts.
"""

from __future__ import annotations

from rest_framework.authentication import SessionAuthentication

from pos.services.operator_session import load_operator_session


class SessionOperator:
    """Minimal user object for request.user (DRF permissions + throttling)."""

    is_authenticated = True
    is_anonymous = False
    is_active = True

    def __init__(self, *, user_id, shop_id, station_id, name: str = ""):
        self.user_id = user_id
        self.shop_id = shop_id
        self.station_id = station_id
        self.name = name

    @property
    def pk(self):
        return self.user_id

    id = pk

    def __str__(self):
        return self.name or f"operator #{self.user_id}"


class OperatorSessionAuthentication(SessionAuthentication):
    def authenticate(self, request):
        session = getattr(request._request, "session", None)
        if session is None:
            return None

        ctx = load_operator_session(session)
        if not ctx.is_authenticated:
            return None

        self.enforce_csrf(request)

        operator = SessionOperator(
            user_id=ctx.user_id,
            shop_id=ctx.shop_id,
            station_id=ctx.effective_station_id,
            name=ctx.name,
        )
        return (operator, None)
