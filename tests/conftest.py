from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from meshprobe.backends import set_backend_transport
from meshprobe.config import Settings, get_settings
from meshprobe.main import create_app
from meshprobe.observability.metrics import reset_metrics


CONNECT_ERROR = object()


class BackendStub:
    """Stands in for downstream services behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.responses: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, response: Any) -> None:
        self.responses[url] = response

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.get(str(request.url), CONNECT_ERROR)
        if response is CONNECT_ERROR:
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def test_environment() -> None:
    get_settings.cache_clear()
    reset_metrics()
    set_backend_transport(None)

    yield

    set_backend_transport(None)
    get_settings.cache_clear()


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    path = tmp_path / "static"
    path.mkdir()
    (path / "hello.txt").write_text("hi from static", encoding="utf-8")
    return path


@pytest.fixture
def make_settings(static_dir: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "version": "v-test",
            "k8s_pod_name": "pod-a",
            "backend_service": "",
            "delay_response_msec": 0,
            "delay_response_percentage": 0,
            "random_delay": False,
            "fault_response_percentage": 0,
            "static_dir": str(static_dir),
            "enable_metrics_endpoint": False,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def build_client(make_settings: Callable[..., Settings]):
    @asynccontextmanager
    async def _build(**overrides: Any) -> AsyncIterator[AsyncClient]:
        app = create_app(make_settings(**overrides))
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    return _build


@pytest.fixture
async def api_client(build_client) -> AsyncIterator[AsyncClient]:
    async with build_client() as client:
        yield client


@pytest.fixture
def backend_stub() -> BackendStub:
    stub = BackendStub()
    set_backend_transport(httpx.MockTransport(stub.handle))
    return stub
