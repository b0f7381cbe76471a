from __future__ import annotations

from fastapi import APIRouter, Depends

from meshprobe.api.dependencies import get_app_settings
from meshprobe.api.responses import ProbeJSONResponse
from meshprobe.api.routes import ANY_METHOD
from meshprobe.config import Settings
from meshprobe.models.schemas import Envelope

router = APIRouter(tags=["health"])


@router.api_route("/livenessz", methods=ANY_METHOD)
async def livenessz(settings: Settings = Depends(get_app_settings)) -> ProbeJSONResponse:
    return ProbeJSONResponse(Envelope(version=settings.version, body="Liveness Check OK.").model_dump())


@router.api_route("/readinessz", methods=ANY_METHOD)
async def readinessz(settings: Settings = Depends(get_app_settings)) -> ProbeJSONResponse:
    return ProbeJSONResponse(Envelope(version=settings.version, body="Readiness Check OK.").model_dump())
