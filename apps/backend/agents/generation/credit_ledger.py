"""
Per-session image generation credit budget.
"""

from threading import RLock
from typing import Dict, Any, Optional

from setup_logging_optimized import get_logger

logger = get_logger(__name__)


class CreditLedger:
    """Counts how many real (non-placeholder) images a session may still generate.

    ``try_reserve`` holds units for an attempt without touching the balance;
    the balance only drops on ``commit`` after a confirmed provider success,
    and an attempt that fails gives its hold back with ``release``. Holding
    units is what keeps two overlapping attempts from spending the same
    credit. All bookkeeping happens under one lock and never awaits.
    """

    def __init__(self, max_credits: Optional[int] = None):
        if max_credits is None:
            from agents.generation.config import get_image_config
            max_credits = get_image_config().max_credits
        if max_credits < 0:
            raise ValueError(f"max_credits must be >= 0, got {max_credits}")

        self._max = max_credits
        self._remaining = max_credits
        self._reserved = 0
        self._committed = 0
        self._has_warned = False
        self.lock = RLock()

    @property
    def max_credits(self) -> int:
        return self._max

    @property
    def has_warned(self) -> bool:
        """True once the exhaustion warning has been issued this session."""
        return self._has_warned

    def remaining(self) -> int:
        """Current balance."""
        with self.lock:
            return self._remaining

    def available(self) -> int:
        """Balance not already held by in-flight attempts."""
        with self.lock:
            return self._remaining - self._reserved

    def try_reserve(self, n: int = 1) -> bool:
        """Hold ``n`` credits for an attempt; False when the budget cannot cover it."""
        with self.lock:
            if self._remaining - self._reserved >= n:
                self._reserved += n
                return True

            if not self._has_warned:
                logger.warning(
                    f"Credits limit reached. Session has used its allotted {self._max} credits; "
                    f"using placeholder images from now on."
                )
                self._has_warned = True
            return False

    def commit(self, n: int = 1) -> int:
        """Spend ``n`` credits after a confirmed success. Returns the amount actually spent."""
        with self.lock:
            spent = min(n, self._remaining)
            self._remaining -= spent
            self._reserved = max(0, self._reserved - n)
            self._committed += spent
            logger.info(f"Image credit spent. Remaining credits: {self._remaining}/{self._max}")
            return spent

    def release(self, n: int = 1) -> None:
        """Give back a hold taken by ``try_reserve`` when the attempt did not succeed."""
        with self.lock:
            self._reserved = max(0, self._reserved - n)

    def reset(self) -> None:
        """Start a new session: full balance, warning re-armed."""
        with self.lock:
            self._remaining = self._max
            self._reserved = 0
            self._committed = 0
            self._has_warned = False
        logger.info(f"Credits reset. Remaining: {self._max}")

    def stats(self) -> Dict[str, Any]:
        with self.lock:
            return {
                'max': self._max,
                'remaining': self._remaining,
                'reserved': self._reserved,
                'committed': self._committed,
                'exhausted': self._remaining == 0,
            }
