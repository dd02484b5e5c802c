"""
Pure ASGI middleware that logs every API request with its outcome.

Logged per request: method, path, query string, client, status code and
duration. Request bodies are logged at DEBUG only, with credentials masked.
BaseHTTPMiddleware is avoided so streaming responses pass through untouched.
"""

import json
import logging
import time
import uuid
from typing import Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)


def _sanitize_body(body: bytes) -> str:
    """Decode a request body and mask sensitive JSON fields."""
    text = body.decode("utf-8", errors="ignore")
    try:
        return truncate_large_data(json.dumps(filter_sensitive_data(json.loads(text)), ensure_ascii=False))
    except json.JSONDecodeError:
        return truncate_large_data(text)


class RequestLoggingMiddleware:
    """Log one line per finished HTTP request, leveled by status code."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        query_string = scope.get("query_string", b"").decode("utf-8", errors="ignore")
        client = scope.get("client")

        body_chunks = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                body_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        fields = {
            "request_id": request_id,
            "method": method,
            "path": path,
            "query": query_string or None,
            "client": client[0] if client else None,
        }

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {**fields, "duration_ms": duration_ms}}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        body = b"".join(body_chunks)
        if body and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Request body: {_sanitize_body(body)}",
                extra={"extra_fields": {"request_id": request_id}}
            )

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        logger.log(
            log_level,
            f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={"extra_fields": {**fields, "status_code": status_code, "duration_ms": duration_ms}}
        )
