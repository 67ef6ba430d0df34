"""Metrics repository — load/replace contract for VisibilityMetrics.

``save`` is a compare-and-swap on ``version``: it succeeds only if the
stored version still equals the one the caller loaded, and returns the
stored snapshot with ``version + 1``. A mismatch raises
ConcurrentUpdateError, so two writers can never silently overwrite each
other's history.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geoscan.analysis.types import VisibilityMetrics
from geoscan.core.errors import ConcurrentUpdateError, GeoScanError, PersistenceError
from geoscan.db.models import VisibilityMetricsRecord
from geoscan.services.aggregator import recompute_metrics

logger = logging.getLogger(__name__)


class MetricsRepository(ABC):
    """Storage for one VisibilityMetrics snapshot per brand."""

    @abstractmethod
    async def load(self, brand_id: str) -> VisibilityMetrics:
        """Current snapshot; empty metrics at version 0 for an unknown brand."""
        ...

    @abstractmethod
    async def save(self, brand_id: str, metrics: VisibilityMetrics) -> VisibilityMetrics:
        """Replace the stored snapshot. Raises PersistenceError on failure."""
        ...


def _conflict(brand_id: str, metrics: VisibilityMetrics) -> ConcurrentUpdateError:
    return ConcurrentUpdateError(
        f"Metrics for brand {brand_id!r} changed since version {metrics.version} was loaded",
        metrics=metrics,
    )


# ---------------------------------------------------------------------------
# In-memory (tests, scripts)
# ---------------------------------------------------------------------------


class InMemoryMetricsRepository(MetricsRepository):
    """Keeps serialized snapshots in a dict, so stored state is never aliased."""

    def __init__(self):
        self._rows: dict[str, dict] = {}

    async def load(self, brand_id: str) -> VisibilityMetrics:
        data = self._rows.get(brand_id)
        if data is None:
            return VisibilityMetrics.empty()
        return VisibilityMetrics.from_dict(data)

    async def save(self, brand_id: str, metrics: VisibilityMetrics) -> VisibilityMetrics:
        current = self._rows.get(brand_id)
        current_version = current["version"] if current else 0
        if metrics.version != current_version:
            raise _conflict(brand_id, metrics)

        stored = replace(metrics, version=current_version + 1)
        self._rows[brand_id] = stored.to_dict()
        return stored


# ---------------------------------------------------------------------------
# SQLAlchemy (PostgreSQL in production)
# ---------------------------------------------------------------------------


class SqlMetricsRepository(MetricsRepository):
    """One row per brand in ``visibility_metrics``; history lives in the JSON payload."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load(self, brand_id: str) -> VisibilityMetrics:
        try:
            async with self._session_factory() as session:
                row = await session.get(VisibilityMetricsRecord, brand_id)
                if row is None:
                    return VisibilityMetrics.empty()
                payload, version = row.payload, row.version
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load metrics for brand {brand_id!r}: {e}") from e

        try:
            metrics = VisibilityMetrics.from_dict(payload)
        except (GeoScanError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Stored metrics for brand {brand_id!r} are corrupt: {e}") from e

        # Derived fields are rebuilt so a stale payload never leaks out
        return replace(recompute_metrics(metrics), version=version)

    async def save(self, brand_id: str, metrics: VisibilityMetrics) -> VisibilityMetrics:
        stored = replace(metrics, version=metrics.version + 1)
        values = {
            "version": stored.version,
            "geo_score": stored.geo_score,
            "brand_mentions": stored.brand_mentions,
            "competitor_mentions": stored.competitor_mentions,
            "overall_presence": stored.overall_presence,
            "payload": stored.to_dict(),
            "updated_at": datetime.now(timezone.utc),
        }

        try:
            async with self._session_factory() as session:
                if metrics.version == 0:
                    session.add(VisibilityMetricsRecord(brand_id=brand_id, **values))
                    await session.commit()
                else:
                    result = await session.execute(
                        update(VisibilityMetricsRecord)
                        .where(
                            VisibilityMetricsRecord.brand_id == brand_id,
                            VisibilityMetricsRecord.version == metrics.version,
                        )
                        .values(**values)
                    )
                    if result.rowcount != 1:
                        await session.rollback()
                        raise _conflict(brand_id, metrics)
                    await session.commit()
        except IntegrityError as e:
            # Another writer inserted the first snapshot
            raise _conflict(brand_id, metrics) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save metrics for brand {brand_id!r}: {e}", metrics=metrics) from e

        logger.info("Saved metrics for brand=%s version=%d", brand_id, stored.version)
        return stored
