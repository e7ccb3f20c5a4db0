# pos/services/results.py

"""
OPERATION RESULT

Every CartOrchestrator operation returns one of these instead of raising.

Payload shapes:
- success: {"success": true, ...data}
- failure: {"success": false, "error": true, "message": "...", "code": "..."}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from commerce.exceptions import RemoteRejected, RemoteUnavailable
from pos.services.exceptions import CartServiceError

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_SERVER_ERROR = 500


@dataclass(frozen=True)
class OperationResult:
    success: bool
    data: Any = None
    message: str = ""
    code: str = ""
    status_code: int = HTTP_OK
    retryable: bool = False

    @property
    def is_error(self) -> bool:
        return self.status_code >= HTTP_BAD_REQUEST

    @classmethod
    def ok(cls, data: Any = None, *, message: str = "") -> "OperationResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def unconfirmed(cls, data: dict, *, default_message: str) -> "OperationResult":
        """Remote answered 2xx but did not report success."""
        message = ""
        if isinstance(data, dict):
            message = str(data.get("message") or "").strip()
        return cls(
            success=False,
            data=data,
            message=message or default_message,
            code="NOT_CONFIRMED",
        )

    @classmethod
    def from_exception(cls, exc: Exception) -> "OperationResult":
        if isinstance(exc, CartServiceError):
            return cls(
                success=False,
                message=exc.message,
                code=exc.code,
                status_code=HTTP_BAD_REQUEST,
            )
        if isinstance(exc, RemoteRejected):
            return cls(
                success=False,
                data=exc.body or None,
                message=exc.message,
                code="REMOTE_REJECTED",
                status_code=HTTP_SERVER_ERROR,
                retryable=exc.is_transient,
            )
        if isinstance(exc, RemoteUnavailable):
            return cls(
                success=False,
                message=exc.message,
                code="REMOTE_UNAVAILABLE",
                status_code=HTTP_SERVER_ERROR,
                retryable=True,
            )
        return cls(
            success=False,
            message=f"Unexpected error: {exc}",
            code="UNKNOWN_ERROR",
            status_code=HTTP_SERVER_ERROR,
        )

    def to_payload(self) -> dict[str, Any]:
        if self.is_error:
            payload = {
                "success": False,
                "error": True,
                "message": self.message,
                "code": self.code,
            }
            if self.code == "REMOTE_REJECTED":
                payload["retryable"] = self.retryable
            return payload

        payload: dict[str, Any] = {"success": self.success}
        if isinstance(self.data, dict):
            payload.update({k: v for k, v in self.data.items() if k != "success"})
        elif self.data is not None:
            payload["data"] = self.data
        if self.message:
            payload["message"] = self.message
        if not self.success and self.code:
            payload["code"] = self.code
        return payload
