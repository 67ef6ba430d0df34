"""Metrics Aggregator — folds analyzed responses into VisibilityMetrics.

Every derived field is a deterministic function of ``history``:

  - brand_mentions      = count(r.brand_mentioned)
  - competitor_mentions = sum(len(r.competitors_mentioned))
  - brand_mention_rate  = 100 × brand_mentions / N
  - average_sentiment   = mean(1.0 positive / 0.5 neutral / 0.0 negative)
  - geo_score           = 0.7 × brand_mention_rate + 0.3 × 100 × average_sentiment
  - overall_presence    = 100 × (brand + competitor mentions) / (2N), clamped to [0, 100]
  - competitor_scores   = per competitor, round(100 × responses mentioning it / N)
  - provider_breakdown  = per provider, responses and brand mentions

Daily metrics group history by UTC date. A merge recomputes only the
dates its new responses fall on and replaces those entries wholesale.

Pure and total over well-formed AnalyzedResponse lists; never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from geoscan.analysis.summary import round_half_up
from geoscan.analysis.types import AnalyzedResponse, DailyMetric, ProviderPerformance, VisibilityMetrics

logger = logging.getLogger(__name__)

GEO_MENTION_WEIGHT = 0.7
GEO_SENTIMENT_WEIGHT = 0.3


@dataclass(frozen=True)
class _Totals:
    responses: int = 0
    brand_mentions: int = 0
    competitor_mentions: int = 0
    sentiment_sum: float = 0.0

    @property
    def brand_mention_rate(self) -> float:
        return 100.0 * self.brand_mentions / self.responses if self.responses else 0.0

    @property
    def competitor_mention_rate(self) -> float:
        return 100.0 * self.competitor_mentions / self.responses if self.responses else 0.0

    @property
    def average_sentiment(self) -> float:
        return self.sentiment_sum / self.responses if self.responses else 0.0

    @property
    def overall_presence(self) -> float:
        if not self.responses:
            return 0.0
        presence = 100.0 * (self.brand_mentions + self.competitor_mentions) / (2 * self.responses)
        return min(100.0, max(0.0, presence))

    @property
    def geo_score(self) -> float:
        return GEO_MENTION_WEIGHT * self.brand_mention_rate + GEO_SENTIMENT_WEIGHT * 100.0 * self.average_sentiment


def _totals(responses) -> _Totals:
    responses = list(responses)
    return _Totals(
        responses=len(responses),
        brand_mentions=sum(1 for r in responses if r.brand_mentioned),
        competitor_mentions=sum(len(r.competitors_mentioned) for r in responses),
        sentiment_sum=sum(r.sentiment.score for r in responses),
    )


def _daily_metric(date: str, history: tuple[AnalyzedResponse, ...]) -> DailyMetric:
    totals = _totals(r for r in history if r.day == date)
    return DailyMetric(
        date=date,
        brand_mention_rate=totals.brand_mention_rate,
        competitor_mention_rate=totals.competitor_mention_rate,
        overall_presence=totals.overall_presence,
        responses=totals.responses,
    )


def _competitor_scores(history: tuple[AnalyzedResponse, ...]) -> dict[str, int]:
    """Percent of all responses mentioning each competitor, rounded half up."""
    if not history:
        return {}
    counts: dict[str, int] = {}
    for r in history:
        for name in r.competitors_mentioned:
            counts[name] = counts.get(name, 0) + 1
    return {name: round_half_up(100 * count / len(history)) for name, count in counts.items()}


def _provider_breakdown(history: tuple[AnalyzedResponse, ...]) -> dict[str, ProviderPerformance]:
    responses: dict[str, int] = {}
    mentions: dict[str, int] = {}
    for r in history:
        name = r.provider.value
        responses[name] = responses.get(name, 0) + 1
        mentions[name] = mentions.get(name, 0) + (1 if r.brand_mentioned else 0)
    return {
        name: ProviderPerformance(provider=name, responses=count, brand_mentions=mentions[name])
        for name, count in responses.items()
    }


def _with_totals(metrics: VisibilityMetrics, history: tuple[AnalyzedResponse, ...]) -> VisibilityMetrics:
    totals = _totals(history)
    return replace(
        metrics,
        history=history,
        geo_score=totals.geo_score,
        brand_mentions=totals.brand_mentions,
        competitor_mentions=totals.competitor_mentions,
        overall_presence=totals.overall_presence,
        average_sentiment=totals.average_sentiment,
        competitor_scores=_competitor_scores(history),
        provider_breakdown=_provider_breakdown(history),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def merge_metrics(existing: VisibilityMetrics, new_responses: list[AnalyzedResponse]) -> VisibilityMetrics:
    """Append *new_responses* to history and recompute derived fields.

    Responses whose ``response_id`` is already in history are skipped, so
    re-merging the same batch is a fixed point. ``version`` is untouched.
    """
    seen = {r.response_id for r in existing.history}
    added: list[AnalyzedResponse] = []
    for response in new_responses or []:
        if response.response_id in seen:
            continue
        seen.add(response.response_id)
        added.append(response)

    if len(added) != len(new_responses or []):
        logger.info("Skipped %d already-merged responses", len(new_responses) - len(added))

    history = existing.history + tuple(added)

    daily = dict(existing.daily_metrics)
    for date in sorted({r.day for r in added}):
        daily[date] = _daily_metric(date, history)

    return replace(_with_totals(existing, history), daily_metrics=daily)


def recompute_metrics(metrics: VisibilityMetrics) -> VisibilityMetrics:
    """Rebuild every derived field, all dates included, from history."""
    daily = {date: _daily_metric(date, metrics.history) for date in sorted({r.day for r in metrics.history})}
    return replace(_with_totals(metrics, metrics.history), daily_metrics=daily)
