from __future__ import annotations

from fastapi import Request

from meshprobe.config import Settings
from meshprobe.health import HealthState
from meshprobe.injection import FaultInjector


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_injector(request: Request) -> FaultInjector:
    return request.app.state.injector


def get_health(request: Request) -> HealthState:
    return request.app.state.health
