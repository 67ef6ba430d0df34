"""Scan Orchestrator — parallel fan-out with a single-provider fallback.

Per prompt:
  1. Dispatch: one task per active provider, each under its own timeout
  2. Collect: wait for every task to settle (no short-circuit)
  3. Succeeded if any provider returned non-blank text; answers kept in dispatch order
  4. Otherwise query the fallback provider once, sequentially, with its
     own (longer) timeout → FallbackSucceeded or Failed

Provider failures are recorded on the PromptScan and never raised.
Prompts in one run are processed sequentially with a pause between them;
a per-provider token bucket can additionally cap requests per minute.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import TYPE_CHECKING

from geoscan.core.errors import ProviderError
from geoscan.core.metrics import PROVIDER_CALLS, PROVIDER_LATENCY, SCAN_RUNS
from geoscan.gateway.rate_limiter import ProviderRateLimiter
from geoscan.gateway.types import (
    ProviderFailure,
    ProviderName,
    Prompt,
    PromptScan,
    RawAnswer,
    ScanPhase,
    ScanStatus,
)
from geoscan.providers.llm_base import BaseProviderClient
from geoscan.providers.registry import ProviderRegistry, parse_provider

if TYPE_CHECKING:
    from geoscan.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 10.0
DEFAULT_FALLBACK_TIMEOUT = 30.0


class ScanOrchestrator:
    """Fans prompts out to providers and collects their raw answers."""

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        fallback_provider: ProviderName | str | None = ProviderName.CHATGPT,
        fallback_timeout: float = DEFAULT_FALLBACK_TIMEOUT,
        inter_prompt_delay: float = 0.0,
        rpm_limits: dict[ProviderName, int] | None = None,
    ):
        self.registry = registry
        self.provider_timeout = provider_timeout
        self.fallback_provider = parse_provider(fallback_provider) if fallback_provider else None
        self.fallback_timeout = fallback_timeout
        self.inter_prompt_delay = inter_prompt_delay
        self.rate_limiter = ProviderRateLimiter(rpm_limits)

    @classmethod
    def from_settings(cls, settings: Settings, registry: ProviderRegistry | None = None) -> ScanOrchestrator:
        rpm_limits: dict[ProviderName, int] = {}
        for name, rpm in settings.provider_rpm_limits.items():
            provider = parse_provider(name)
            if provider is None:
                logger.warning("Ignoring RPM limit for unknown provider %s", name)
                continue
            rpm_limits[provider] = rpm

        return cls(
            registry=registry if registry is not None else ProviderRegistry.from_settings(settings),
            provider_timeout=settings.provider_timeout_seconds,
            fallback_provider=settings.fallback_provider or None,
            fallback_timeout=settings.fallback_timeout_seconds,
            inter_prompt_delay=settings.inter_prompt_delay_seconds,
            rpm_limits=rpm_limits,
        )

    # ------------------------------------------------------------------
    # Single provider call
    # ------------------------------------------------------------------

    async def _call_provider(
        self,
        provider: ProviderName,
        client: BaseProviderClient,
        prompt_text: str,
        timeout: float,
    ) -> RawAnswer:
        """Query one provider; every failure mode comes back as an error marker."""
        await self.rate_limiter.acquire(provider)

        start = time.monotonic()
        try:
            answer = await asyncio.wait_for(client.query(prompt_text, timeout), timeout=timeout)
        except asyncio.TimeoutError:
            answer = RawAnswer.failed(provider, f"Timeout after {timeout}s", kind=ProviderError.TIMEOUT)
        except Exception as e:
            logger.exception("Unexpected error from %s", provider.value)
            answer = RawAnswer.failed(provider, f"{type(e).__name__}: {e}", kind=ProviderError.UNEXPECTED)
        elapsed = time.monotonic() - start

        if answer.ok and not (answer.text or "").strip():
            # Blank text is no answer at all
            answer = RawAnswer.failed(provider, "Empty answer text", kind=ProviderError.MALFORMED)
        answer = replace(
            answer,
            provider=provider,
            latency_ms=answer.latency_ms or int(elapsed * 1000),
        )

        status = "ok" if answer.ok else answer.error.kind
        PROVIDER_CALLS.labels(provider=provider.value, status=status).inc()
        PROVIDER_LATENCY.labels(provider=provider.value).observe(elapsed)

        if not answer.ok:
            logger.warning("%s failed: %s", provider.value, answer.error.cause)
        return answer

    # ------------------------------------------------------------------
    # One prompt across the provider set
    # ------------------------------------------------------------------

    async def scan_prompt(self, prompt: Prompt | str, providers: list[ProviderName | str]) -> PromptScan:
        """Dispatch → Collecting → Succeeded | FallbackSucceeded | Failed."""
        prompt = Prompt.coerce(prompt)
        scan = PromptScan(prompt=prompt, status=ScanStatus.DISPATCHED)

        # Slots keep dispatch order: either a coroutine or a pre-recorded failure
        slots: list[tuple[ProviderName, BaseProviderClient | None]] = []
        calls = []
        seen: set[ProviderName] = set()
        for name in providers:
            provider = parse_provider(name)
            if provider is None:
                logger.warning("Skipping unknown provider %r", name)
                continue
            if provider in seen:
                continue
            seen.add(provider)
            client = self.registry.get(provider)
            slots.append((provider, client))
            if client is None:
                continue
            calls.append(self._call_provider(provider, client, prompt.text, self.provider_timeout))

        scan.status = ScanStatus.COLLECTING
        results = iter(await asyncio.gather(*calls))

        for provider, client in slots:
            if client is None:
                scan.failures.append(
                    ProviderFailure(
                        provider=provider,
                        prompt=prompt.text,
                        error=ProviderError(provider, "provider not configured"),
                        phase=ScanPhase.PARALLEL,
                    )
                )
                continue
            answer = next(results)
            if answer.ok:
                scan.answers.append(answer)
            else:
                scan.failures.append(
                    ProviderFailure(provider=provider, prompt=prompt.text, error=answer.error, phase=ScanPhase.PARALLEL)
                )

        if scan.answers:
            scan.status = ScanStatus.SUCCEEDED
        else:
            await self._run_fallback(scan)

        SCAN_RUNS.labels(status=scan.status.value).inc()
        logger.info(
            "Prompt scan %s: %d answers, %d failures",
            scan.status.value,
            len(scan.answers),
            len(scan.failures),
        )
        return scan

    async def _run_fallback(self, scan: PromptScan) -> None:
        provider = self.fallback_provider
        if provider is None:
            scan.status = ScanStatus.FAILED
            return

        logger.info("All providers failed, falling back to %s", provider.value)
        client = self.registry.get(provider)
        if client is None:
            answer = RawAnswer.failed(provider, "provider not configured", kind=ProviderError.UNEXPECTED)
        else:
            answer = await self._call_provider(provider, client, scan.prompt.text, self.fallback_timeout)

        if answer.ok:
            scan.answers.append(answer)
            scan.status = ScanStatus.FALLBACK_SUCCEEDED
        else:
            scan.failures.append(
                ProviderFailure(provider=provider, prompt=scan.prompt.text, error=answer.error, phase=ScanPhase.FALLBACK)
            )
            scan.status = ScanStatus.FAILED

    # ------------------------------------------------------------------
    # Multi-prompt session
    # ------------------------------------------------------------------

    async def run(self, prompts: list[Prompt | str], providers: list[ProviderName | str]) -> list[PromptScan]:
        """Scan prompts one after another, pausing between them."""
        scans: list[PromptScan] = []
        for idx, prompt in enumerate(prompts):
            if idx and self.inter_prompt_delay > 0:
                await asyncio.sleep(self.inter_prompt_delay)
            scans.append(await self.scan_prompt(prompt, providers))
        return scans
