from __future__ import annotations

import time
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders

from meshprobe.observability.metrics import get_metrics


REQUEST_ID_HEADER = "X-Request-Id"


def nanosecond_request_id() -> str:
    return str(time.time_ns())


def _remote_addr(scope: dict[str, Any]) -> str:
    client = scope.get("client")
    if not client:
        return ""
    host, port = client
    return f"{host}:{port}"


class TracingMiddleware:
    """Assigns or propagates the request ID and echoes it on the response."""

    def __init__(self, app: Callable[..., Any], next_request_id: Callable[[], str] = nanosecond_request_id) -> None:
        self.app = app
        self.next_request_id = next_request_id

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or self.next_request_id()
        scope.setdefault("state", {})["request_id"] = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        async def send_wrapper(message: dict[str, Any]) -> None:
            if message.get("type") == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            structlog.contextvars.clear_contextvars()


class AccessLogMiddleware:
    """Writes one access log line per request, after the inner app is done."""

    def __init__(self, app: Callable[..., Any]) -> None:
        self.app = app
        # Avoid self-observing the observability endpoint.
        self._excluded_metric_paths = {"/metricsz"}

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        start = perf_counter()
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (perf_counter() - start) * 1000.0
            path = scope.get("path")

            if path not in self._excluded_metric_paths:
                get_metrics().observe_http_request(elapsed_ms=elapsed_ms)

            request_id = scope.get("state", {}).get("request_id") or "unknown"
            structlog.get_logger("access").info(
                "http_request",
                request_id=request_id,
                method=scope.get("method"),
                path=path,
                remote_addr=_remote_addr(scope),
                user_agent=Headers(scope=scope).get("user-agent", ""),
                status_code=status_code,
                elapsed_ms=round(elapsed_ms, 2),
            )
