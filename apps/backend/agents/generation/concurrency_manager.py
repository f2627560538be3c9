"""
Rate limiting for image provider calls.

One rolling window per provider. Exceeding a limit never raises; the caller
is told how long to wait instead.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from threading import RLock
from typing import Awaitable, Callable, Deque, Dict, Optional, Union

from agents.domain.models import Provider
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

ProviderKey = Union[Provider, str]


@dataclass
class RateWindow:
    """Admissions to one provider within the trailing ``window_length`` seconds."""
    limit: int
    window_length: float
    calls: Deque[float] = field(default_factory=deque)

    @property
    def count(self) -> int:
        return len(self.calls)

    @property
    def window_start(self) -> Optional[float]:
        """Time of the oldest admission still inside the window."""
        return self.calls[0] if self.calls else None

    def expire(self, now: float) -> None:
        while self.calls and now - self.calls[0] >= self.window_length:
            self.calls.popleft()

    def reset(self) -> None:
        self.calls.clear()


class RateLimiter:
    """Rolling-window request counter per provider."""

    def __init__(
        self,
        limits: Optional[Dict[str, Dict[str, float]]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        if limits is None:
            from agents.generation.config import get_provider_config
            limits = get_provider_config().rate_limits

        self._limits = {str(name): dict(values) for name, values in limits.items()}
        self._windows: Dict[str, RateWindow] = {}
        self._clock = clock
        self.lock = RLock()

    @staticmethod
    def _key(provider: ProviderKey) -> str:
        return provider.value if isinstance(provider, Provider) else str(provider)

    def window(self, provider: ProviderKey) -> RateWindow:
        key = self._key(provider)
        with self.lock:
            if key not in self._windows:
                limits = self._limits.get(key)
                if limits is None:
                    raise KeyError(f"No rate limit configured for provider '{key}'")
                self._windows[key] = RateWindow(
                    limit=int(limits['requests_per_window']),
                    window_length=float(limits['window_seconds'])
                )
            return self._windows[key]

    def admit(self, provider: ProviderKey) -> float:
        """Count a call if the window has room and return 0, else return the wait in milliseconds."""
        with self.lock:
            window = self.window(provider)
            now = self._clock()
            window.expire(now)

            if window.count < window.limit:
                window.calls.append(now)
                return 0

            wait_ms = max(0.0, (window.window_start + window.window_length - now) * 1000.0)
            logger.info(f"Rate limit reached for {self._key(provider)}, need to wait {wait_ms:.0f}ms")
            return wait_ms

    async def acquire(
        self,
        provider: ProviderKey,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> float:
        """Wait until ``provider`` admits a call. Returns the total seconds waited."""
        waited = 0.0
        wait_ms = self.admit(provider)
        while wait_ms > 0:
            await sleep(wait_ms / 1000.0)
            waited += wait_ms / 1000.0
            wait_ms = self.admit(provider)
        return waited

    def reset(self) -> None:
        """Clear every window; only called at a session boundary."""
        with self.lock:
            for window in self._windows.values():
                window.reset()
        logger.info("Image provider rate limit windows reset")

    def stats(self) -> Dict[str, Dict[str, float]]:
        with self.lock:
            now = self._clock()
            result = {}
            for key, window in self._windows.items():
                window.expire(now)
                result[key] = {
                    'count': window.count,
                    'limit': window.limit,
                    'window_length': window.window_length,
                }
            return result
