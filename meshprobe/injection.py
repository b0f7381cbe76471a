from __future__ import annotations

import asyncio
import random

import structlog

from meshprobe.config import Settings
from meshprobe.observability.metrics import get_metrics


class FaultInjector:
    """Per-request latency and fault decisions driven by configured percentages.

    One generator is seeded at construction and shared by every request. The
    handlers run on a single event loop, so draws never interleave.
    """

    def __init__(self, settings: Settings, rng: random.Random | None = None) -> None:
        self.settings = settings
        self._rng = rng if rng is not None else random.Random()

    def _roll(self, percentage: int) -> bool:
        # Draw space is [1, 100]: 0 never fires, 100 always does.
        return self._rng.randint(1, 100) <= percentage

    def should_delay(self) -> bool:
        return self._roll(self.settings.delay_response_percentage)

    def should_fault(self) -> bool:
        return self._roll(self.settings.fault_response_percentage)

    def delay_duration(self) -> float:
        """Seconds to sleep when a delay fires."""
        max_ms = self.settings.delay_response_msec
        if max_ms <= 0:
            return 0.0
        if self.settings.random_delay:
            return self._rng.randint(1, max_ms) / 1000.0
        return max_ms / 1000.0

    async def maybe_delay(self) -> float:
        if not self.should_delay():
            return 0.0
        seconds = self.delay_duration()
        get_metrics().observe_delay()
        structlog.get_logger("injection").info("delay_injected", delay_ms=round(seconds * 1000.0, 2))
        if seconds > 0:
            await asyncio.sleep(seconds)
        return seconds
