"""
run_scan.py — end-to-end visibility scan against the configured providers

Runs the whole pipeline in one process:
  1. Build the provider registry from .env (API keys, enabled providers)
  2. Scan every prompt across the providers (parallel + fallback)
  3. Analyze the answers for the brand and its competitors
  4. Merge into metrics held in an in-memory repository
  5. Print the per-scan summary and the resulting GEO metrics

Usage:
    python run_scan.py
    BRAND="Acme Corp" COMPETITORS="Globex,Initech" python run_scan.py
"""

import asyncio
import json
import logging
import os
import sys
import time

from geoscan.core.config import settings
from geoscan.core.errors import AllProvidersFailedError
from geoscan.core.logging import setup_logging
from geoscan.db.repository import InMemoryMetricsRepository
from geoscan.gateway.types import Prompt, PromptIntent, PromptVolume
from geoscan.services.scan_service import VisibilityScanService

logger = logging.getLogger("run_scan")

BRAND = os.environ.get("BRAND", "Notion")
COMPETITORS = [c.strip() for c in os.environ.get("COMPETITORS", "Confluence,Coda,Obsidian").split(",") if c.strip()]
INDUSTRY = os.environ.get("INDUSTRY", "")

PROMPTS = [
    Prompt("What are the best note-taking apps for teams?", PromptIntent.DISCOVERY, PromptVolume.VERY_HIGH),
    Prompt("Which knowledge base tool should a startup use?", PromptIntent.HIGH_INTENT, PromptVolume.HIGH),
    Prompt("Compare popular wiki tools for engineering teams", PromptIntent.HIGH_INTENT, PromptVolume.LOW),
]


def _header(title: str) -> None:
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


async def main() -> int:
    setup_logging()

    # ── Step 1: Providers ────────────────────────────────────
    _header("Step 1: Providers")
    repository = InMemoryMetricsRepository()
    service = VisibilityScanService.from_settings(settings, repository)
    registry = service.orchestrator.registry
    for name in settings.enabled_provider_names:
        print(f"  {name:12s} {'✓ configured' if name in registry else '✗ no API key'}")
    if not len(registry):
        print("\n  ❌ No provider has an API key configured (see .env)")
        return 1

    # ── Step 2: Scan ─────────────────────────────────────────
    _header("Step 2: Scan")
    print(f"  Brand: {BRAND}   Competitors: {', '.join(COMPETITORS)}")
    print(f"  {len(PROMPTS)} prompts × {len(settings.enabled_provider_names)} providers")
    start = time.monotonic()
    try:
        outcome, metrics = await service.scan_and_record(
            "demo",
            BRAND,
            COMPETITORS,
            PROMPTS,
            settings.enabled_provider_names,
            industry=INDUSTRY or None,
        )
    except AllProvidersFailedError as e:
        print(f"\n  ❌ No analysis could be produced this run: {e}")
        for failure in e.failures:
            print(f"    {failure.provider.value:12s} [{failure.phase.value}] {failure.error.cause}")
        return 1
    print(f"  Done in {time.monotonic() - start:.1f}s, status={outcome.status.value}")

    # ── Step 3: Responses ────────────────────────────────────
    _header("Step 3: Responses")
    for r in outcome.analyzed_responses:
        mark = "✓" if r.brand_mentioned else "·"
        rank = f"#{r.brand_position}" if r.brand_position else "-"
        print(f"  {mark} {r.provider.value:10s} {rank:4s} {r.sentiment.value:8s} {r.prompt[:45]}")
        if r.competitors_mentioned:
            print(f"      competitors: {', '.join(r.competitors_mentioned)}")
    for failure in outcome.failures:
        print(f"  ✗ {failure.provider.value:10s} {failure.error.kind}: {failure.error.cause}")

    # ── Step 4: Metrics ──────────────────────────────────────
    _header("Step 4: Metrics")
    print(f"  {outcome.summary.text}")
    print(f"  GEO score:        {metrics.geo_score_display}")
    print(f"  Brand mentions:   {metrics.brand_mentions}/{metrics.total_responses}")
    print(f"  Overall presence: {metrics.overall_presence:.1f}%")
    print(f"  Models monitored: {metrics.models_monitored} (top: {metrics.top_provider or 'none'})")
    for name, score in metrics.competitor_scores.items():
        print(f"  Competitor {name}: {score}%")
    print(json.dumps([m.to_dict() for m in metrics.daily_metrics.values()], indent=4))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
