from __future__ import annotations

import json
from collections.abc import Mapping
from time import perf_counter
from typing import Any

import httpx
import structlog

from meshprobe.observability.metrics import get_metrics


TRACING_HEADERS: tuple[str, ...] = (
    "X-Request-Id",
    "X-B3-Traceid",
    "X-B3-Spanid",
    "X-B3-Parentspanid",
    "X-B3-Sampled",
    "X-B3-Flags",
    "B3",
    "X-Ot-Span-Context",
)

_transport: httpx.AsyncBaseTransport | None = None


class BackendUnavailable(Exception):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Backend '{url}' unavailable: {reason}")
        self.url = url
        self.reason = reason


def set_backend_transport(transport: httpx.AsyncBaseTransport | None) -> None:
    global _transport
    _transport = transport


def propagate_headers(inbound: Mapping[str, str]) -> dict[str, str]:
    """Pick the allow-listed tracing headers that are present and non-empty."""
    headers: dict[str, str] = {}
    for name in TRACING_HEADERS:
        value = inbound.get(name)
        if value:
            headers[name] = value
    return headers


def _header_bytes(value: str) -> bytes:
    # Inbound header values arrive latin-1 decoded; re-encode to forward the original bytes.
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


def _parse_body(content: bytes) -> dict[str, Any]:
    try:
        data = json.loads(content)
    except (ValueError, RecursionError):
        return {}
    return data if isinstance(data, dict) else {}


async def call_backend(url: str, headers: Mapping[str, str], timeout: float) -> dict[str, Any]:
    log = structlog.get_logger("backend")
    start = perf_counter()
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=_transport) as client:
            resp = await client.get(url, headers={name: _header_bytes(value) for name, value in headers.items()})
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        elapsed_ms = (perf_counter() - start) * 1000.0
        get_metrics().observe_backend_call(elapsed_ms=elapsed_ms, failed=True)
        log.warning("backend_call_failed", url=url, error=f"{type(exc).__name__}: {exc}", elapsed_ms=round(elapsed_ms, 2))
        raise BackendUnavailable(url, type(exc).__name__) from exc

    elapsed_ms = (perf_counter() - start) * 1000.0
    get_metrics().observe_backend_call(elapsed_ms=elapsed_ms)
    log.info("backend_call", url=url, status_code=resp.status_code, elapsed_ms=round(elapsed_ms, 2))
    return _parse_body(resp.content)


async def fan_out(urls: list[str], inbound_headers: Mapping[str, str], *, timeout: float) -> dict[str, dict[str, Any]]:
    """Call each backend in order and collect its JSON body under its URL.

    The first transport failure aborts the remaining calls and raises
    BackendUnavailable.
    """
    headers = propagate_headers(inbound_headers)
    results: dict[str, dict[str, Any]] = {}
    for url in urls:
        results[url] = await call_backend(url, headers, timeout)
    return results
