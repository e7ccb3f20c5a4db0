# commerce/client.py
from __future__ import annotations

import json
import logging
import ssl
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from django.conf import settings

from commerce.exceptions import RemoteRejected, RemoteUnavailable

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 30

BODY_METHODS = {"POST", "PUT", "PATCH"}


@dataclass(frozen=True)
class RemoteResponse:
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def _commerce_cfg() -> dict:
    cfg = getattr(settings, "COMMERCE_API", {}) or {}
    return cfg if isinstance(cfg, dict) else {}


def _safe_preview(text: str, limit: int = 500) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def parse_body(raw: str) -> dict[str, Any]:
    """
    Normalize a response body into a dict.

    - JSON object      -> as-is
    - other JSON value -> {"data": value}
    - non-JSON text    -> {"message": raw}
    - empty body       -> {}
    """
    raw = raw or ""
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"message": raw}
    if isinstance(parsed, dict):
        return parsed
    return {"data": parsed}


def _error_message(body: dict[str, Any]) -> str:
    msg = body.get("message") or body.get("error") or ""
    if not isinstance(msg, str):
        msg = json.dumps(msg, ensure_ascii=False)
    return _safe_preview(msg)


class CommerceApiClient:
    """
    Synchronous JSON client for the remote cart/commerce API.

    One instance per operator request: the bearer token belongs to the
    operator session that built it.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_tls: bool = True,
    ):
        self.base_url = (base_url or DEFAULT_BASE_URL).strip().rstrip("/")
        self.token = (token or "").strip() or None
        self.timeout = timeout
        self.verify_tls = verify_tls

    @classmethod
    def from_settings(cls, *, token: str | None = None) -> "CommerceApiClient":
        cfg = _commerce_cfg()
        return cls(
            base_url=str(cfg.get("BASE_URL") or DEFAULT_BASE_URL),
            token=token,
            timeout=float(cfg.get("TIMEOUT") or DEFAULT_TIMEOUT),
            verify_tls=bool(cfg.get("VERIFY_TLS", True)),
        )

    # -------------------------------------------------
    # URL / headers
    # -------------------------------------------------

    def build_url(self, path: str, query: dict | None = None) -> str:
        url = f"{self.base_url}/{(path or '').lstrip('/')}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"BEARER {self.token}"
        return headers

    def _ssl_context(self):
        if self.verify_tls:
            return None
        return ssl._create_unverified_context()

    # -------------------------------------------------
    # Core request
    # -------------------------------------------------

    def send(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        *,
        query: dict | None = None,
    ) -> RemoteResponse:
        method = (method or "GET").strip().upper()
        url = self.build_url(path, query)

        data = None
        if method in BODY_METHODS and body:
            data = json.dumps(body, ensure_ascii=False, default=str).encode("utf-8")

        req = Request(url, data=data, headers=self.build_headers(), method=method)

        try:
            with urlopen(req, timeout=self.timeout, context=self._ssl_context()) as resp:
                status_code = int(getattr(resp, "status", None) or resp.getcode())
                raw = resp.read().decode("utf-8", errors="replace")
        except HTTPError as e:
            status_code = int(e.code)
            try:
                raw = e.read().decode("utf-8", errors="replace")
            except (OSError, HTTPException):
                raw = ""
        except (URLError, TimeoutError, OSError, HTTPException) as e:
            reason = getattr(e, "reason", None) or e
            logger.warning(
                "Commerce API unreachable",
                extra={"method": method, "path": path, "reason": str(reason)},
            )
            raise RemoteUnavailable(f"Commerce API connection error: {reason}") from e

        parsed = parse_body(raw)

        logger.info(
            "Commerce API call",
            extra={"method": method, "path": path, "status_code": status_code},
        )

        if status_code >= 400:
            message = _error_message(parsed)
            logger.warning(
                "Commerce API rejected request",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "remote_message": message,
                },
            )
            raise RemoteRejected(status_code, message, parsed)

        return RemoteResponse(status_code=status_code, body=parsed)

    # -------------------------------------------------
    # Verb helpers (return the parsed body)
    # -------------------------------------------------

    def get(self, path: str, query: dict | None = None) -> dict[str, Any]:
        return self.send("GET", path, query=query).body

    def post(self, path: str, body: dict | None = None) -> dict[str, Any]:
        return self.send("POST", path, body).body

    def patch(self, path: str, body: dict | None = None) -> dict[str, Any]:
        return self.send("PATCH", path, body).body

    def put(self, path: str, body: dict | None = None) -> dict[str, Any]:
        return self.send("PUT", path, body).body

    def delete(self, path: str) -> dict[str, Any]:
        return self.send("DELETE", path).body
