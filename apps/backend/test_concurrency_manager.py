"""
Tests for the per-provider rolling-window rate limiter.
"""

import asyncio

import pytest

from agents.domain.models import Provider
from agents.generation.concurrency_manager import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


LIMITS = {
    'ideogram': {'requests_per_window': 2, 'window_seconds': 60.0},
    'recraft': {'requests_per_window': 2, 'window_seconds': 60.0},
}


def test_admits_up_to_limit_then_reports_wait():
    clock = FakeClock()
    limiter = RateLimiter(LIMITS, clock=clock)

    assert limiter.admit(Provider.IDEOGRAM) == 0
    clock.advance(10)
    assert limiter.admit(Provider.IDEOGRAM) == 0
    clock.advance(5)

    # Oldest admission leaves the window 45s from now
    assert limiter.admit(Provider.IDEOGRAM) == pytest.approx(45000.0)
    assert limiter.window(Provider.IDEOGRAM).count == 2


def test_providers_have_independent_windows():
    limiter = RateLimiter(LIMITS, clock=FakeClock())

    limiter.admit(Provider.IDEOGRAM)
    limiter.admit(Provider.IDEOGRAM)

    assert limiter.admit(Provider.IDEOGRAM) > 0
    assert limiter.admit(Provider.RECRAFT) == 0


def test_window_expires():
    clock = FakeClock()
    limiter = RateLimiter(LIMITS, clock=clock)
    limiter.admit('recraft')
    limiter.admit('recraft')

    clock.advance(60)

    assert limiter.admit('recraft') == 0
    assert limiter.window('recraft').count == 1


def test_no_interval_exceeds_limit():
    clock = FakeClock()
    limiter = RateLimiter(LIMITS, clock=clock)
    admitted = []

    for _ in range(40):
        if limiter.admit(Provider.RECRAFT) == 0:
            admitted.append(clock.now)
        clock.advance(7)

    for start in admitted:
        inside = [t for t in admitted if start <= t < start + 60.0]
        assert len(inside) <= 2


def test_acquire_sleeps_until_admitted():
    clock = FakeClock()
    limiter = RateLimiter(LIMITS, clock=clock)
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)
        clock.advance(seconds)

    async def scenario():
        await limiter.acquire(Provider.IDEOGRAM, sleep=fake_sleep)
        await limiter.acquire(Provider.IDEOGRAM, sleep=fake_sleep)
        return await limiter.acquire(Provider.IDEOGRAM, sleep=fake_sleep)

    waited = asyncio.run(scenario())

    assert slept == [pytest.approx(60.0)]
    assert waited == pytest.approx(60.0)


def test_reset_clears_windows():
    limiter = RateLimiter(LIMITS, clock=FakeClock())
    limiter.admit('ideogram')
    limiter.admit('ideogram')

    limiter.reset()

    assert limiter.admit('ideogram') == 0
    assert limiter.stats()['ideogram']['count'] == 1


def test_unknown_provider_raises():
    limiter = RateLimiter(LIMITS, clock=FakeClock())

    with pytest.raises(KeyError):
        limiter.admit('midjourney')
