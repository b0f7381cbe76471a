from __future__ import annotations

from fastapi import APIRouter, Depends

from meshprobe.api.dependencies import get_app_settings, get_health
from meshprobe.api.responses import ProbeJSONResponse, not_found
from meshprobe.config import Settings
from meshprobe.health import HealthState
from meshprobe.observability.metrics import get_metrics


router = APIRouter(tags=["metrics"])


@router.get("/metricsz")
async def metrics(
    settings: Settings = Depends(get_app_settings),
    health: HealthState = Depends(get_health),
):
    if not settings.enable_metrics_endpoint:
        return not_found()
    return ProbeJSONResponse({**get_metrics().snapshot(), "healthy": health.is_healthy})
