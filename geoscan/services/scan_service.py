"""Visibility scan service — RunScan and MergeMetrics for collaborators.

Flow for one tracked brand:
  1. Validate input (fail fast, before any provider call)
  2. Orchestrator fans each prompt out to the provider set
  3. Mention Analyzer turns every answer into an AnalyzedResponse
     (dispatch order, after all network calls of the prompt settled)
  4. Aggregator merges the batch into the stored metrics
  5. Repository persists the snapshot

Steps 4–5 for one brand are serialized by a per-brand lock; the
repository's version check guards against writers in other processes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from geoscan.analysis.analyzer import build_analyzed_response
from geoscan.analysis.summary import summarize_scan
from geoscan.analysis.types import AnalyzedResponse, VisibilityMetrics
from geoscan.core.errors import AllProvidersFailedError, InvalidInputError, PersistenceError
from geoscan.core.metrics import METRICS_SAVES
from geoscan.db.repository import MetricsRepository
from geoscan.gateway.orchestrator import ScanOrchestrator
from geoscan.gateway.types import ProviderName, Prompt, ScanOutcome
from geoscan.providers.registry import parse_provider
from geoscan.services import aggregator

if TYPE_CHECKING:
    from geoscan.core.config import Settings

logger = logging.getLogger(__name__)


def _validate(
    brand: str,
    prompts: list[Prompt | str | dict],
    providers: list[ProviderName | str],
) -> tuple[list[Prompt], list[ProviderName]]:
    if not brand or not brand.strip():
        raise InvalidInputError("Brand name is required")
    if not prompts:
        raise InvalidInputError("At least one prompt is required")
    if not providers:
        raise InvalidInputError("At least one provider is required")

    try:
        parsed_prompts = [Prompt.coerce(p) for p in prompts]
    except (AttributeError, ValueError) as e:
        raise InvalidInputError(f"Malformed prompt: {e}") from e
    if any(not p.text or not p.text.strip() for p in parsed_prompts):
        raise InvalidInputError("Prompt text must not be empty")

    parsed_providers: list[ProviderName] = []
    for name in providers:
        provider = parse_provider(name)
        if provider is None:
            raise InvalidInputError(f"Unknown provider: {name}")
        if provider not in parsed_providers:
            parsed_providers.append(provider)

    return parsed_prompts, parsed_providers


class VisibilityScanService:
    """Runs scans and records their results for tracked brands."""

    def __init__(self, orchestrator: ScanOrchestrator, repository: MetricsRepository):
        self.orchestrator = orchestrator
        self.repository = repository
        self._brand_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @classmethod
    def from_settings(cls, settings: Settings, repository: MetricsRepository) -> VisibilityScanService:
        return cls(orchestrator=ScanOrchestrator.from_settings(settings), repository=repository)

    # ------------------------------------------------------------------
    # RunScan
    # ------------------------------------------------------------------

    async def run_scan(
        self,
        brand: str,
        competitors: list[str] | None,
        prompts: list[Prompt | str | dict],
        providers: list[ProviderName | str],
        industry: str | None = None,
    ) -> ScanOutcome:
        """Scan every prompt across the provider set and analyze the answers.

        Raises InvalidInputError before any provider call, and
        AllProvidersFailedError when no prompt produced a single answer.
        Individual provider failures are only recorded on the outcome.
        """
        parsed_prompts, parsed_providers = _validate(brand, prompts, providers)
        brand = brand.strip()
        competitors = [c.strip() for c in competitors or [] if c and c.strip()]
        parsed_prompts = [p.for_industry(industry) for p in parsed_prompts]

        logger.info(
            "Scan started: brand=%s prompts=%d providers=%s",
            brand,
            len(parsed_prompts),
            [p.value for p in parsed_providers],
        )

        scans = await self.orchestrator.run(parsed_prompts, parsed_providers)

        # Analysis runs only after every network call has settled
        timestamp = datetime.now(timezone.utc)
        outcome = ScanOutcome(brand=brand, prompt_scans=scans)
        for scan in scans:
            outcome.failures.extend(scan.failures)
            for answer in scan.answers:
                outcome.analyzed_responses.append(
                    build_analyzed_response(scan.prompt, answer, brand, competitors, timestamp=timestamp)
                )
        outcome.summary = summarize_scan(outcome.analyzed_responses, brand)

        if not outcome.analyzed_responses:
            logger.error(
                "No visibility data obtainable for brand=%s: %d provider failures",
                brand,
                len(outcome.failures),
            )
            raise AllProvidersFailedError(
                f"No provider returned an answer for brand {brand!r}",
                outcome=outcome,
            )

        logger.info(
            "Scan finished: brand=%s status=%s responses=%d failures=%d",
            brand,
            outcome.status.value,
            len(outcome.analyzed_responses),
            len(outcome.failures),
        )
        return outcome

    # ------------------------------------------------------------------
    # MergeMetrics
    # ------------------------------------------------------------------

    @staticmethod
    def merge_metrics(existing: VisibilityMetrics, new_responses: list[AnalyzedResponse]) -> VisibilityMetrics:
        return aggregator.merge_metrics(existing, new_responses)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _brand_lock(self, brand_id: str):
        """Hold the brand's lock; the entry is dropped once no task holds or awaits it."""
        lock = self._brand_locks.setdefault(brand_id, asyncio.Lock())
        self._lock_holders[brand_id] = self._lock_holders.get(brand_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[brand_id] -= 1
            if not self._lock_holders[brand_id]:
                del self._lock_holders[brand_id]
                del self._brand_locks[brand_id]

    async def record_scan(self, brand_id: str, outcome: ScanOutcome) -> VisibilityMetrics:
        """Load, merge and save under the brand's lock.

        On a failed save the PersistenceError carries the merged snapshot
        (``.metrics``) so the caller can retry without rescanning.
        """
        async with self._brand_lock(brand_id):
            existing = await self.repository.load(brand_id)
            merged = self.merge_metrics(existing, outcome.analyzed_responses)
            try:
                stored = await self.repository.save(brand_id, merged)
            except PersistenceError as e:
                METRICS_SAVES.labels(status="error").inc()
                logger.error("Failed to save metrics for brand=%s: %s", brand_id, e, extra={"brand_id": brand_id})
                if e.metrics is None:
                    e.metrics = merged
                raise

        METRICS_SAVES.labels(status="ok").inc()
        logger.info(
            "Metrics recorded: brand=%s geo_score=%.1f history=%d version=%d",
            brand_id,
            stored.geo_score,
            len(stored.history),
            stored.version,
            extra={"brand_id": brand_id},
        )
        return stored

    async def scan_and_record(
        self,
        brand_id: str,
        brand: str,
        competitors: list[str] | None,
        prompts: list[Prompt | str | dict],
        providers: list[ProviderName | str],
        industry: str | None = None,
    ) -> tuple[ScanOutcome, VisibilityMetrics]:
        """RunScan then record. AllProvidersFailedError stops before any merge."""
        outcome = await self.run_scan(brand, competitors, prompts, providers, industry=industry)
        metrics = await self.record_scan(brand_id, outcome)
        return outcome, metrics
