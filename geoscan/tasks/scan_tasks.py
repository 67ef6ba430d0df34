"""Celery tasks for scheduled visibility scans.

One task run = one RunScan for a brand followed by a serialized
load → merge → save of its metrics. Retries are not attempted here:
a failed scan leaves stored metrics untouched and is picked up again
at the next scheduled run.
"""

import asyncio
import logging

from geoscan.core.errors import AllProvidersFailedError
from geoscan.services.schedule import TrackingFrequency, next_run_time
from geoscan.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run an async coroutine from sync Celery task context.

    Creates a fresh event loop each time; the engine built for the task
    is bound to it and disposed before the loop closes.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _build_service():
    """Service with a SQL repository on a per-task engine. Returns (service, engine)."""
    from geoscan.core.config import settings
    from geoscan.db.postgres import make_session_factory
    from geoscan.db.repository import SqlMetricsRepository
    from geoscan.services.scan_service import VisibilityScanService

    session_factory, engine = make_session_factory(pool_size=5, max_overflow=5)
    service = VisibilityScanService.from_settings(settings, SqlMetricsRepository(session_factory))
    return service, engine


async def _run_scheduled_scan_async(
    brand_id: str,
    brand: str,
    competitors: list[str],
    prompts: list,
    providers: list[str],
    industry: str | None,
    frequency: str,
) -> dict:
    next_run = next_run_time(frequency).isoformat()
    service, engine = _build_service()
    try:
        try:
            outcome, metrics = await service.scan_and_record(
                brand_id,
                brand,
                competitors,
                prompts,
                providers,
                industry=industry,
            )
        except AllProvidersFailedError as e:
            logger.warning("Scheduled scan for brand=%s produced no data: %s", brand_id, e)
            return {
                "brand_id": brand_id,
                "status": "failed",
                "error": str(e),
                "failed_providers": [f.provider.value for f in e.failures],
                "next_run": next_run,
            }

        return {
            "brand_id": brand_id,
            "status": outcome.status.value,
            "geo_score": metrics.geo_score_display,
            "competitor_scores": metrics.competitor_scores,
            "models_monitored": metrics.models_monitored,
            "top_provider": metrics.top_provider,
            "responses": len(outcome.analyzed_responses),
            "failed_providers": [p.value for p in outcome.failed_providers],
            "summary": outcome.summary.text if outcome.summary else "",
            "version": metrics.version,
            "next_run": next_run,
        }
    finally:
        if engine is not None:
            await engine.dispose()


@celery_app.task(bind=True, name="run_scheduled_scan", max_retries=0)
def run_scheduled_scan(
    self,
    brand_id: str,
    brand: str,
    competitors: list[str],
    prompts: list,
    providers: list[str],
    frequency: str = TrackingFrequency.WEEKLY.value,
    industry: str | None = None,
):
    """Celery task: scan one brand and record the merged metrics."""
    logger.info("Starting scheduled scan for brand=%s", brand_id)
    try:
        result = _run_async(
            _run_scheduled_scan_async(brand_id, brand, competitors, prompts, providers, industry, frequency)
        )
        logger.info("Scheduled scan done for brand=%s: %s", brand_id, result)
        return result
    except Exception as exc:
        logger.error("Scheduled scan failed for brand=%s: %s", brand_id, exc)
        return {"brand_id": brand_id, "status": "error", "error": str(exc)}
