from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from meshprobe.api.dependencies import get_app_settings, get_injector
from meshprobe.api.responses import ProbeJSONResponse
from meshprobe.backends import BackendUnavailable, fan_out
from meshprobe.config import Settings
from meshprobe.injection import FaultInjector
from meshprobe.models.schemas import BackendEnvelope, Envelope
from meshprobe.observability.metrics import get_metrics

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]

router = APIRouter(tags=["probe"])


@router.api_route("/", methods=ANY_METHOD)
async def index(
    settings: Settings = Depends(get_app_settings),
    injector: FaultInjector = Depends(get_injector),
) -> ProbeJSONResponse:
    await injector.maybe_delay()
    if injector.should_fault():
        get_metrics().observe_fault()
        structlog.get_logger("injection").info("fault_injected")
        envelope = Envelope(version=settings.version, body="Fault.")
        return ProbeJSONResponse(envelope.model_dump(), status_code=503)

    envelope = Envelope(version=settings.version, body=settings.k8s_pod_name)
    return ProbeJSONResponse(envelope.model_dump())


@router.api_route("/backend", methods=ANY_METHOD)
async def backend(request: Request, settings: Settings = Depends(get_app_settings)) -> Response:
    try:
        results = await fan_out(settings.backend_urls, request.headers, timeout=settings.backend_timeout_s)
    except BackendUnavailable:
        return Response(status_code=503)

    envelope = BackendEnvelope(version=settings.version, body=settings.k8s_pod_name, backend=results)
    return ProbeJSONResponse(envelope.model_dump())
