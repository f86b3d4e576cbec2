from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Iterable, Optional, Tuple

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("multivalue_form_element.http")


_SENSITIVE_KEYS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "token",
    "secret",
    "password",
    "supabase_service_role_key",
}


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: ("***" if str(k).lower() in _SENSITIVE_KEYS else _redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _header(headers: Iterable[Tuple[bytes, bytes]], name: bytes) -> Optional[str]:
    for k, v in headers:
        if k.lower() == name:
            return v.decode("latin-1", errors="replace")
    return None


def _parse_body(body: bytes, truncated: bool) -> Any:
    if not body:
        return ""
    if truncated:
        return body.decode("utf-8", errors="replace") + "...<truncated>"
    try:
        return _redact(json.loads(body.decode("utf-8", errors="replace")))
    except ValueError:
        return "<non-json>"


class HttpLoggingMiddleware:
    """One JSON line per HTTP request: method, path, status, duration and the (redacted) request body."""

    def __init__(self, app: ASGIApp, *, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max(0, max_body_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        headers = list(scope.get("headers") or [])
        request_id = _header(headers, b"x-request-id") or uuid.uuid4().hex[:12]
        body_buf = bytearray()
        truncated = False
        status: Optional[int] = None

        async def receive_wrapped() -> Message:
            nonlocal truncated
            message = await receive()
            if message.get("type") == "http.request" and self.max_body_bytes:
                chunk = message.get("body") or b""
                remaining = self.max_body_bytes - len(body_buf)
                if remaining > 0:
                    body_buf.extend(chunk[:remaining])
                if len(chunk) > max(remaining, 0):
                    truncated = True
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal status
            if message.get("type") == "http.response.start":
                status = int(message.get("status") or 0)
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - log then re-raise
            err = e
            raise
        finally:
            record: Dict[str, Any] = {
                "id": request_id,
                "method": str(scope.get("method") or "").upper(),
                "path": str(scope.get("path") or ""),
                "status": status,
                "dur_ms": int((time.perf_counter() - started_at) * 1000),
            }
            if self.max_body_bytes:
                record["body"] = _parse_body(bytes(body_buf), truncated)
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))


def install_http_logging(app: Any, *, enabled: bool, max_body_bytes: int) -> None:
    """
    Enable request logging (`MULTIVALUE_HTTP_LOG=1`); bodies are capped at
    `MULTIVALUE_HTTP_LOG_BODY_MAX_BYTES` (0 disables body capture).
    """
    if not enabled:
        return
    app.add_middleware(HttpLoggingMiddleware, max_body_bytes=max_body_bytes)
