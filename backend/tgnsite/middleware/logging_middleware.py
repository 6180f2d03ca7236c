"""
Request/response logging as a pure ASGI middleware.

One summary line per request with status, duration and the (filtered,
truncated) bodies. Multipart uploads and binary responses are logged by size
only.
"""

import json
import logging
import time
import uuid
from typing import Any, Dict, List, Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import settings
from ..core.logging_config import filter_sensitive_data, truncate_large_data
from ..core.session_log import hash_client_ip

logger = logging.getLogger(__name__)

MAX_BODY_LOG_LENGTH = 5000


def _sanitize_body(data: bytes, content_type: Optional[str]) -> Optional[str]:
    """Render a body for logging; JSON payloads get sensitive keys masked."""
    if not data:
        return None
    if content_type and not content_type.startswith(("application/json", "text/")):
        return f"<{content_type}, {len(data)} bytes>"

    text = data.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=MAX_BODY_LOG_LENGTH)
    return truncate_large_data(
        json.dumps(filter_sensitive_data(payload), ensure_ascii=False),
        max_length=MAX_BODY_LOG_LENGTH,
    )


def _extract_error_reason(body_text: Optional[str]) -> Optional[str]:
    """Pull the short error label out of an error body."""
    if not body_text:
        return None
    try:
        payload = json.loads(body_text)
    except json.JSONDecodeError:
        return truncate_large_data(body_text, max_length=500)
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if payload.get(key):
                return str(payload[key])
    return truncate_large_data(body_text, max_length=500)


def _decode_headers(raw_headers: List) -> Dict[str, str]:
    return {
        k.decode("latin-1").lower(): v.decode("latin-1")
        for k, v in raw_headers
    }


def _status_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware:
    """
    Pure ASGI middleware logging every HTTP request and its response.

    The client address is logged as a salted hash, read from the same proxy
    header the chat rate limiter uses.
    """

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths passed through without logging (default: "/", "/health")
        """
        self.app = app
        self.exclude_paths = set(exclude_paths or ["/health", "/"])

    def _client_hash(self, scope: Scope, headers: Dict[str, str]) -> Optional[str]:
        client_ip = headers.get(settings.client_ip_header.lower())
        if not client_ip and scope.get("client"):
            client_ip = scope["client"][0]
        return hash_client_ip(client_ip, settings.ip_hash_salt)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        headers = _decode_headers(scope.get("headers", []))

        request_body = bytearray()
        response_body = bytearray()
        response: Dict[str, Any] = {"status": 0, "content_type": None}

        async def receive_wrapper() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_body.extend(message.get("body", b""))
            return message

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response["status"] = message.get("status", 0)
                response["content_type"] = _decode_headers(message.get("headers", [])).get("content-type")
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))
            await send(message)

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        logger.debug(
            f"-> {method} {path}",
            extra={"extra_fields": {"request_id": request_id, "user_agent": headers.get("user-agent")}}
        )

        try:
            await self.app(scope, receive_wrapper, send_wrapper)
        except Exception as e:
            logger.error(
                f"{method} {path} raised {type(e).__name__}",
                exc_info=True,
                extra={"extra_fields": {"request_id": request_id, "duration_ms": elapsed_ms()}}
            )
            raise

        status_code = response["status"]
        logged_response = _sanitize_body(bytes(response_body), response["content_type"])
        error_reason = _extract_error_reason(logged_response) if status_code >= 400 else None

        summary = f"{method} {path} -> {status_code} in {elapsed_ms():.2f}ms"
        if error_reason:
            summary += f" ({error_reason})"

        logger.log(
            _status_level(status_code),
            summary,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": elapsed_ms(),
                "client_hash": self._client_hash(scope, headers),
                "request_body": _sanitize_body(bytes(request_body), headers.get("content-type")),
                "response_body": logged_response,
            }}
        )
