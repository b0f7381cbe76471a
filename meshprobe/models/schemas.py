from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    version: str
    body: str


class BackendEnvelope(Envelope):
    backend: dict[str, dict[str, Any]]
