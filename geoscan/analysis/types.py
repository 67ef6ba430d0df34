"""Core types and DTOs for mention analysis and visibility metrics."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from geoscan.core.errors import InvalidInputError
from geoscan.gateway.types import ProviderName


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Sentiment(str, Enum):
    """Coarse sentiment bucket for a brand mention."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    @property
    def score(self) -> float:
        """Numeric score used by the GEO score: 1.0 / 0.5 / 0.0."""
        return _SENTIMENT_SCORES[self]


_SENTIMENT_SCORES = {
    Sentiment.POSITIVE: 1.0,
    Sentiment.NEUTRAL: 0.5,
    Sentiment.NEGATIVE: 0.0,
}


class MarketPosition(str, Enum):
    """Market position label derived from the text around the brand."""

    MARKET_LEADER = "Market Leader"
    WELL_KNOWN = "Well-Known Brand"
    EMERGING = "Emerging Brand"
    ALTERNATIVE = "Alternative Option"
    MENTIONED = "Mentioned Brand"
    NOT_MENTIONED = ""


# ---------------------------------------------------------------------------
# Analyzer output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompetitorMention:
    name: str
    rank: int | None = None  # None = mentioned but unranked


@dataclass
class MentionResult:
    """Output of analyze() for one response text."""

    brand_mentioned: bool = False
    brand_rank: int | None = None
    sentiment: Sentiment = Sentiment.NEUTRAL
    market_position: MarketPosition = MarketPosition.NOT_MENTIONED
    competitors: list[CompetitorMention] = field(default_factory=list)

    @property
    def competitors_mentioned(self) -> list[str]:
        return [c.name for c in self.competitors]


# ---------------------------------------------------------------------------
# AnalyzedResponse: durable unit of scan history
# ---------------------------------------------------------------------------


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse an ISO-8601 timestamp; reject naive or malformed values."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidInputError(f"Malformed timestamp: {value!r}") from e
    else:
        raise InvalidInputError(f"Malformed timestamp: {value!r}")

    if ts.tzinfo is None or ts.utcoffset() is None:
        raise InvalidInputError(f"Timestamp must be timezone-aware: {value!r}")
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class AnalyzedResponse:
    """One provider answer to one prompt, analyzed. Never mutated."""

    prompt: str
    provider: ProviderName
    response_text: str
    brand_mentioned: bool
    brand_position: int | None
    competitors_mentioned: tuple[str, ...]
    sentiment: Sentiment
    market_position_label: str
    timestamp: datetime
    model: str = ""
    response_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def day(self) -> str:
        """UTC calendar date, YYYY-MM-DD."""
        return self.timestamp.astimezone(timezone.utc).date().isoformat()

    def to_dict(self) -> dict:
        return {
            "response_id": self.response_id,
            "prompt": self.prompt,
            "provider": self.provider.value,
            "model": self.model,
            "response_text": self.response_text,
            "brand_mentioned": self.brand_mentioned,
            "brand_position": self.brand_position,
            "competitors_mentioned": list(self.competitors_mentioned),
            "sentiment": self.sentiment.value,
            "market_position_label": self.market_position_label,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> AnalyzedResponse:
        try:
            provider = ProviderName(data["provider"])
            sentiment = Sentiment(data.get("sentiment", Sentiment.NEUTRAL.value))
        except (KeyError, ValueError) as e:
            raise InvalidInputError(f"Malformed analyzed response: {e}") from e

        return cls(
            response_id=data.get("response_id") or uuid.uuid4().hex,
            prompt=data.get("prompt", ""),
            provider=provider,
            model=data.get("model", ""),
            response_text=data.get("response_text", ""),
            brand_mentioned=bool(data.get("brand_mentioned", False)),
            brand_position=data.get("brand_position"),
            competitors_mentioned=tuple(data.get("competitors_mentioned") or ()),
            sentiment=sentiment,
            market_position_label=data.get("market_position_label", ""),
            timestamp=parse_timestamp(data.get("timestamp")),
        )


# ---------------------------------------------------------------------------
# VisibilityMetrics: cumulative state for one tracked brand
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DailyMetric:
    date: str  # YYYY-MM-DD (UTC)
    brand_mention_rate: float = 0.0
    competitor_mention_rate: float = 0.0
    overall_presence: float = 0.0
    responses: int = 0

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "brand_mention_rate": self.brand_mention_rate,
            "competitor_mention_rate": self.competitor_mention_rate,
            "overall_presence": self.overall_presence,
            "responses": self.responses,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DailyMetric:
        return cls(
            date=data["date"],
            brand_mention_rate=float(data.get("brand_mention_rate", 0.0)),
            competitor_mention_rate=float(data.get("competitor_mention_rate", 0.0)),
            overall_presence=float(data.get("overall_presence", 0.0)),
            responses=int(data.get("responses", 0)),
        )


@dataclass(frozen=True)
class ProviderPerformance:
    """How often one provider's answers mentioned the brand."""

    provider: str
    responses: int = 0
    brand_mentions: int = 0

    @property
    def brand_mention_rate(self) -> float:
        return 100.0 * self.brand_mentions / self.responses if self.responses else 0.0

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "responses": self.responses,
            "brand_mentions": self.brand_mentions,
            "brand_mention_rate": self.brand_mention_rate,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProviderPerformance:
        return cls(
            provider=data["provider"],
            responses=int(data.get("responses", 0)),
            brand_mentions=int(data.get("brand_mentions", 0)),
        )


@dataclass(frozen=True)
class VisibilityMetrics:
    """Cumulative visibility state for one brand.

    Every field except ``history`` and ``version`` is derived from
    ``history`` by services.aggregator; nothing sets them independently.
    ``version`` is the repository's compare-and-swap token.
    """

    geo_score: float = 0.0
    brand_mentions: int = 0
    competitor_mentions: int = 0
    overall_presence: float = 0.0
    average_sentiment: float = 0.0
    history: tuple[AnalyzedResponse, ...] = ()
    daily_metrics: dict[str, DailyMetric] = field(default_factory=dict)
    competitor_scores: dict[str, int] = field(default_factory=dict)  # name -> % of responses
    provider_breakdown: dict[str, ProviderPerformance] = field(default_factory=dict)  # first-seen order
    version: int = 0

    @classmethod
    def empty(cls) -> VisibilityMetrics:
        return cls()

    @property
    def geo_score_display(self) -> int:
        return round(self.geo_score)

    @property
    def total_responses(self) -> int:
        return len(self.history)

    @property
    def models_monitored(self) -> int:
        return len(self.provider_breakdown)

    @property
    def top_provider(self) -> str | None:
        """Provider with the most brand mentions; first seen wins ties. None if never mentioned."""
        top, best = None, 0
        for perf in self.provider_breakdown.values():
            if perf.brand_mentions > best:
                top, best = perf.provider, perf.brand_mentions
        return top

    def to_dict(self) -> dict:
        return {
            "geo_score": self.geo_score,
            "brand_mentions": self.brand_mentions,
            "competitor_mentions": self.competitor_mentions,
            "overall_presence": self.overall_presence,
            "average_sentiment": self.average_sentiment,
            "history": [r.to_dict() for r in self.history],
            "daily_metrics": [m.to_dict() for m in sorted(self.daily_metrics.values(), key=lambda m: m.date)],
            "competitor_scores": dict(self.competitor_scores),
            "provider_breakdown": [p.to_dict() for p in self.provider_breakdown.values()],
            "models_monitored": self.models_monitored,
            "top_provider": self.top_provider,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> VisibilityMetrics:
        daily = {}
        for entry in data.get("daily_metrics") or []:
            metric = DailyMetric.from_dict(entry)
            daily[metric.date] = metric
        breakdown = {}
        for entry in data.get("provider_breakdown") or []:
            perf = ProviderPerformance.from_dict(entry)
            breakdown[perf.provider] = perf
        return cls(
            geo_score=float(data.get("geo_score", 0.0)),
            brand_mentions=int(data.get("brand_mentions", 0)),
            competitor_mentions=int(data.get("competitor_mentions", 0)),
            overall_presence=float(data.get("overall_presence", 0.0)),
            average_sentiment=float(data.get("average_sentiment", 0.0)),
            history=tuple(AnalyzedResponse.from_dict(r) for r in data.get("history") or []),
            daily_metrics=daily,
            competitor_scores={str(k): int(v) for k, v in (data.get("competitor_scores") or {}).items()},
            provider_breakdown=breakdown,
            version=int(data.get("version", 0)),
        )
