from __future__ import annotations

from threading import Lock


class HealthState:
    """Process health flag shared by the server and the app.

    Set healthy once the listener is bound, unhealthy as soon as shutdown starts.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._healthy = False

    def mark_healthy(self) -> None:
        with self._lock:
            self._healthy = True

    def mark_unhealthy(self) -> None:
        with self._lock:
            self._healthy = False

    @property
    def is_healthy(self) -> bool:
        with self._lock:
            return self._healthy
