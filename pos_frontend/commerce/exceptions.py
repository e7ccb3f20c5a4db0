# commerce/exceptions.py

"""
COMMERCE API ERRORS

Two failure kinds leave the client:
- RemoteUnavailable: the request never produced an HTTP status
  (DNS, refused connection, TLS, timeout).
- RemoteRejected: the remote answered with a status >= 400.
"""

from __future__ import annotations


class CommerceApiError(Exception):
    """Base exception for all remote commerce API failures."""

    default_message = "Commerce API error"

    def __init__(self, message: str = ""):
        self.message = (message or "").strip() or self.default_message
        super().__init__(self.message)


class RemoteUnavailable(CommerceApiError):
    """Raised when the transport fails or times out."""

    default_message = "Commerce API is unreachable"

    @property
    def is_transient(self) -> bool:
        return True


class RemoteRejected(CommerceApiError):
    """Raised when the remote API responds with status >= 400."""

    def __init__(self, status_code: int, message: str = "", body: dict | None = None):
        self.status_code = int(status_code)
        self.body = body or {}
        super().__init__(message)

    @property
    def is_client_error(self) -> bool:
        # 4xx: the request itself must change before it can succeed
        return 400 <= self.status_code < 500

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500

    def __str__(self) -> str:
        return f"{self.status_code} {self.message}"
