from __future__ import annotations

import random
from types import SimpleNamespace

import pytest

from meshprobe import injection
from meshprobe.injection import FaultInjector


class FixedDraws:
    """random.Random stand-in that replays preset randint results."""

    def __init__(self, *draws: int) -> None:
        self.draws = list(draws)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.draws.pop(0)


@pytest.mark.parametrize(
    ("percentage", "draw", "expected"),
    [
        (0, 1, False),
        (100, 100, True),
        (30, 30, True),
        (30, 31, False),
        (150, 100, True),
        (-5, 1, False),
    ],
)
def test_fault_decision_boundaries(make_settings, percentage: int, draw: int, expected: bool) -> None:
    rng = FixedDraws(draw)
    injector = FaultInjector(make_settings(fault_response_percentage=percentage), rng=rng)
    assert injector.should_fault() is expected
    assert rng.calls == [(1, 100)]


def test_delay_uses_its_own_percentage(make_settings) -> None:
    injector = FaultInjector(
        make_settings(delay_response_percentage=10, fault_response_percentage=90),
        rng=FixedDraws(50, 50),
    )
    assert injector.should_delay() is False
    assert injector.should_fault() is True


def test_extremes_over_many_trials(make_settings) -> None:
    never = FaultInjector(make_settings(fault_response_percentage=0, delay_response_percentage=0), rng=random.Random(7))
    always = FaultInjector(make_settings(fault_response_percentage=100, delay_response_percentage=100), rng=random.Random(7))

    assert not any(never.should_fault() or never.should_delay() for _ in range(2000))
    assert all(always.should_fault() and always.should_delay() for _ in range(2000))


def test_probability_tracks_percentage(make_settings) -> None:
    injector = FaultInjector(make_settings(fault_response_percentage=25), rng=random.Random(42))
    trials = 20000
    hits = sum(injector.should_fault() for _ in range(trials))
    assert abs(hits / trials - 0.25) < 0.02


def test_fixed_delay_duration(make_settings) -> None:
    injector = FaultInjector(make_settings(delay_response_msec=250, random_delay=False))
    assert injector.delay_duration() == pytest.approx(0.25)


def test_random_delay_duration_stays_in_range(make_settings) -> None:
    injector = FaultInjector(make_settings(delay_response_msec=40, random_delay=True), rng=random.Random(3))
    samples = [injector.delay_duration() for _ in range(1000)]
    assert min(samples) >= 0.001
    assert max(samples) <= 0.040
    assert len(set(samples)) > 1


@pytest.mark.parametrize("random_delay", [True, False])
def test_zero_max_delay_is_guarded(make_settings, random_delay: bool) -> None:
    injector = FaultInjector(make_settings(delay_response_msec=0, random_delay=random_delay))
    assert injector.delay_duration() == 0.0


async def test_maybe_delay_sleeps_when_triggered(make_settings, monkeypatch: pytest.MonkeyPatch) -> None:
    slept: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        slept.append(seconds)

    monkeypatch.setattr(injection, "asyncio", SimpleNamespace(sleep=fake_sleep))
    injector = FaultInjector(
        make_settings(delay_response_percentage=100, delay_response_msec=120),
        rng=FixedDraws(1),
    )

    assert await injector.maybe_delay() == pytest.approx(0.12)
    assert slept == [pytest.approx(0.12)]


async def test_maybe_delay_skips_when_not_triggered(make_settings, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fail_sleep(seconds: float) -> None:
        raise AssertionError("should not sleep")

    monkeypatch.setattr(injection, "asyncio", SimpleNamespace(sleep=fail_sleep))
    injector = FaultInjector(make_settings(delay_response_percentage=0, delay_response_msec=500))
    assert await injector.maybe_delay() == 0.0
