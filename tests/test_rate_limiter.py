"""Tests for the per-provider token bucket."""

from unittest.mock import AsyncMock, patch

import pytest

from geoscan.gateway.rate_limiter import ProviderRateLimiter, RpmLimiter
from geoscan.gateway.types import ProviderName


class TestRpmLimiter:
    def test_default_burst(self):
        assert RpmLimiter(rpm=60).burst == 15
        assert RpmLimiter(rpm=2).burst == 1

    def test_invalid_rpm(self):
        with pytest.raises(ValueError):
            RpmLimiter(rpm=0)

    @pytest.mark.asyncio
    async def test_burst_passes_without_waiting(self):
        limiter = RpmLimiter(rpm=60, burst=2)
        with patch("geoscan.gateway.rate_limiter.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            assert await limiter.acquire() == 0.0
            assert await limiter.acquire() == 0.0
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_waits_when_bucket_empty(self):
        limiter = RpmLimiter(rpm=60, burst=1)
        with patch("geoscan.gateway.rate_limiter.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            await limiter.acquire()
            waited = await limiter.acquire()

        assert mock_sleep.await_count == 1
        assert 0.9 < waited <= 1.0


class TestProviderRateLimiter:
    @pytest.mark.asyncio
    async def test_unlimited_provider(self):
        limiter = ProviderRateLimiter({ProviderName.CHATGPT: 60})
        assert await limiter.acquire(ProviderName.GEMINI) == 0.0

    def test_zero_rpm_ignored(self):
        limiter = ProviderRateLimiter({ProviderName.CHATGPT: 0})
        assert limiter.limiter_for(ProviderName.CHATGPT) is None
