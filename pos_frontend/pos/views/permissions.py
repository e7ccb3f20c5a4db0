from rest_framework.permissions import BasePermission

from pos.services.operator_session import load_operator_session


class IsPOSOperator(BasePermission):
    """
    Allows access only to an authenticated operator session that carries
    the identity forwarded on every remote cart call:
    - API token
    - user id
    - shop id
    """

    message = "Operator session required."

    def has_permission(self, request, view):
        session = getattr(request, "session", None)
        if session is None:
            return False

        ctx = load_operator_session(session)
        if not ctx.is_authenticated:
            return False

        return ctx.user_id is not None and ctx.shop_id is not None
