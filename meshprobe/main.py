from __future__ import annotations

from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from meshprobe.api.health import router as health_router
from meshprobe.api.metrics import router as metrics_router
from meshprobe.api.responses import not_found
from meshprobe.api.routes import router as probe_router
from meshprobe.config import Settings, get_settings
from meshprobe.health import HealthState
from meshprobe.injection import FaultInjector
from meshprobe.observability.middleware import AccessLogMiddleware, TracingMiddleware


async def _http_exception(request: Request, exc: StarletteHTTPException):
    # Unknown paths answer with plain text, not the JSON envelope.
    if exc.status_code == 404:
        return not_found()
    return await http_exception_handler(request, exc)


def create_app(settings: Settings | None = None, health: HealthState | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="meshprobe",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        # "/livenessz/" is an unknown path, not a redirect.
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.health = health or HealthState()
    app.state.injector = FaultInjector(settings)

    app.include_router(probe_router)
    app.include_router(health_router)
    app.include_router(metrics_router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    else:
        structlog.get_logger("startup").warning("static_dir_missing", static_dir=str(static_dir))

    app.add_exception_handler(StarletteHTTPException, _http_exception)

    # Last added runs outermost: tracing wraps access logging wraps the router.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(TracingMiddleware)
    return app
