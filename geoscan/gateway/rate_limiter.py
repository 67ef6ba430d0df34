"""Per-provider token-bucket limiter.

Replaces a fixed pause between model calls with a requests-per-minute
budget per provider. Providers without a configured RPM are not limited.
"""

from __future__ import annotations

import asyncio
import logging
import time

from geoscan.gateway.types import ProviderName

logger = logging.getLogger(__name__)


class RpmLimiter:
    """Token-bucket rate limiter that enforces requests-per-minute.

    Allows bursts up to *burst* tokens, refills at *rpm* tokens per minute.
    Each ``acquire()`` consumes one token, sleeping when the bucket is empty.
    """

    def __init__(self, rpm: int, burst: int | None = None):
        if rpm <= 0:
            raise ValueError(f"rpm must be positive, got {rpm}")
        self.rpm = rpm
        self.burst = burst or max(rpm // 4, 1)
        self._tokens = float(self.burst)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> float:
        return self._tokens

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        self._tokens = min(self.burst, self._tokens + elapsed * (self.rpm / 60.0))
        self._last_refill = now

    async def acquire(self) -> float:
        """Take one token; returns the number of seconds spent waiting."""
        async with self._lock:
            self._refill(time.monotonic())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0

            deficit = 1.0 - self._tokens
            wait = deficit / (self.rpm / 60.0)
            # Reserve the token now so concurrent waiters queue behind it
            self._tokens -= 1.0

        logger.debug("RpmLimiter: waiting %.2fs (rpm=%d)", wait, self.rpm)
        await asyncio.sleep(wait)
        return wait


class ProviderRateLimiter:
    """One RpmLimiter per provider with a configured limit."""

    def __init__(self, rpm_limits: dict[ProviderName, int] | None = None):
        self._limiters: dict[ProviderName, RpmLimiter] = {
            provider: RpmLimiter(rpm) for provider, rpm in (rpm_limits or {}).items() if rpm and rpm > 0
        }

    def limiter_for(self, provider: ProviderName) -> RpmLimiter | None:
        return self._limiters.get(provider)

    async def acquire(self, provider: ProviderName) -> float:
        limiter = self._limiters.get(provider)
        if limiter is None:
            return 0.0
        return await limiter.acquire()
