from __future__ import annotations

import socket
from time import perf_counter
from types import FrameType

import structlog
import uvicorn

from meshprobe.config import Settings
from meshprobe.health import HealthState
from meshprobe.main import create_app

# Matches the idle timeout of the probe's keep-alive connections.
KEEP_ALIVE_TIMEOUT_S = 15


class ProbeServer(uvicorn.Server):
    """uvicorn server that drives the health flag through its lifecycle."""

    def __init__(self, config: uvicorn.Config, health: HealthState) -> None:
        super().__init__(config)
        self.health = health
        self.shutdown_started_at: float | None = None

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.started and not self.should_exit:
            self.health.mark_healthy()
            structlog.get_logger("server").info(
                "server_ready",
                listen_addr=f"{self.config.host}:{self.config.port}",
            )

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        if self.shutdown_started_at is None:
            self.shutdown_started_at = perf_counter()
            self.health.mark_unhealthy()
            structlog.get_logger("server").info("server_shutting_down", signal=sig)
        super().handle_exit(sig, frame)

    def shutdown_overran(self, timeout_s: float) -> bool:
        if self.shutdown_started_at is None:
            return False
        return perf_counter() - self.shutdown_started_at >= timeout_s


def build_server(settings: Settings, health: HealthState | None = None) -> ProbeServer:
    health = health or HealthState()
    config = uvicorn.Config(
        create_app(settings, health),
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=False,
        timeout_keep_alive=KEEP_ALIVE_TIMEOUT_S,
        timeout_graceful_shutdown=settings.shutdown_timeout_s,
    )
    return ProbeServer(config, health)


def serve(settings: Settings) -> int:
    """Run until interrupted; returns the process exit code."""
    log = structlog.get_logger("server")
    log.info(
        "server_starting",
        version=settings.version,
        git_tag=settings.git_tag,
        git_commit=settings.git_commit,
        git_tree_state=settings.git_tree_state,
        backends=settings.backend_urls,
        **settings.identity(),
    )

    server = build_server(settings)
    server.run()

    if server.shutdown_overran(settings.shutdown_timeout_s):
        log.error("shutdown_timeout_exceeded", timeout_s=settings.shutdown_timeout_s)
        return 1
    log.info("server_stopped")
    return 0
