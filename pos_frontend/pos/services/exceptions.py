# pos/services/exceptions.py

"""
POS CART SERVICE ERRORS

Caller errors detected before any remote call. Remote failures use
commerce.exceptions (RemoteRejected / RemoteUnavailable).
"""


class CartServiceError(Exception):
    """Base exception for caller-correctable cart failures."""

    code = "CART_ERROR"
    default_message = "Cart operation failed"

    def __init__(self, message: str = ""):
        self.message = (message or "").strip() or self.default_message
        super().__init__(self.message)


class ValidationError(CartServiceError):
    """Raised when required input is missing or malformed."""

    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class NoActiveCartError(CartServiceError):
    """Raised when an operation needs a cart reference and none is held."""

    code = "NO_ACTIVE_CART"
    default_message = "No active cart"
