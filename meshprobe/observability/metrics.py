from __future__ import annotations

from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any


@dataclass
class _LatencyAgg:
    count: int = 0
    sum_ms: float = 0.0
    max_ms: float = 0.0

    def observe(self, elapsed_ms: float) -> None:
        self.count += 1
        self.sum_ms += float(elapsed_ms)
        if elapsed_ms > self.max_ms:
            self.max_ms = float(elapsed_ms)


class InMemoryMetrics:
    """Thread-safe, process-local metrics (resets on restart)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.http_requests_total: int = 0
        self.delays_injected_total: int = 0
        self.faults_injected_total: int = 0
        self.backend_calls_total: int = 0
        self.backend_errors_total: int = 0
        self.http_request_ms = _LatencyAgg()
        self.backend_call_ms = _LatencyAgg()

    def observe_http_request(self, elapsed_ms: float) -> None:
        with self._lock:
            self.http_requests_total += 1
            self.http_request_ms.observe(elapsed_ms)

    def observe_delay(self) -> None:
        with self._lock:
            self.delays_injected_total += 1

    def observe_fault(self) -> None:
        with self._lock:
            self.faults_injected_total += 1

    def observe_backend_call(self, elapsed_ms: float, failed: bool = False) -> None:
        with self._lock:
            self.backend_calls_total += 1
            self.backend_call_ms.observe(elapsed_ms)
            if failed:
                self.backend_errors_total += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {
                    "http_requests_total": self.http_requests_total,
                    "delays_injected_total": self.delays_injected_total,
                    "faults_injected_total": self.faults_injected_total,
                    "backend_calls_total": self.backend_calls_total,
                    "backend_errors_total": self.backend_errors_total,
                },
                "latency_ms": {
                    "http_request_ms": asdict(self.http_request_ms),
                    "backend_call_ms": asdict(self.backend_call_ms),
                },
            }

    def reset(self) -> None:
        with self._lock:
            self.http_requests_total = 0
            self.delays_injected_total = 0
            self.faults_injected_total = 0
            self.backend_calls_total = 0
            self.backend_errors_total = 0
            self.http_request_ms = _LatencyAgg()
            self.backend_call_ms = _LatencyAgg()


_METRICS: InMemoryMetrics | None = None


def get_metrics() -> InMemoryMetrics:
    global _METRICS
    if _METRICS is None:
        _METRICS = InMemoryMetrics()
    return _METRICS


def reset_metrics() -> None:
    """Reset metrics counters/aggregates (used by tests)."""

    get_metrics().reset()
