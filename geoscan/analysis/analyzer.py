"""Mention Analyzer — brand presence, rank, market position and sentiment.

Pure and synchronous; runs only after every provider call of a prompt
has settled:

  1. Locate the brand (case-insensitive substring)
  2. Rank it from the list markers that precede it
  3. Classify market position (±100 chars)
  4. Evaluate sentiment (±150 chars)
  5. Locate and rank every competitor against the full text
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from geoscan.analysis.context_evaluator import classify_market_position, evaluate_sentiment
from geoscan.analysis.ranking_parser import find_first, list_rank
from geoscan.analysis.types import (
    AnalyzedResponse,
    CompetitorMention,
    MarketPosition,
    MentionResult,
    Sentiment,
    parse_timestamp,
)
from geoscan.gateway.types import Prompt, RawAnswer

logger = logging.getLogger(__name__)


def _find_competitors(text: str, competitor_names: list[str]) -> list[CompetitorMention]:
    """Mentioned competitors ordered by first occurrence; ties keep input order."""
    found: list[tuple[int, int, CompetitorMention]] = []
    seen: set[str] = set()

    for idx, name in enumerate(competitor_names or []):
        name = (name or "").strip()
        key = name.lower()
        if not name or key in seen:
            continue
        seen.add(key)

        offset = find_first(text, name)
        if offset < 0:
            continue
        found.append((offset, idx, CompetitorMention(name=name, rank=list_rank(text, offset))))

    found.sort(key=lambda item: (item[0], item[1]))
    return [mention for _, _, mention in found]


def analyze(response_text: str, brand_name: str, competitor_names: list[str] | None = None) -> MentionResult:
    """Analyze one response text for the tracked brand and its competitors."""
    text = response_text or ""
    competitors = _find_competitors(text, competitor_names or [])

    offset = find_first(text, (brand_name or "").strip())
    if offset < 0:
        return MentionResult(
            brand_mentioned=False,
            brand_rank=None,
            sentiment=Sentiment.NEUTRAL,
            market_position=MarketPosition.NOT_MENTIONED,
            competitors=competitors,
        )

    return MentionResult(
        brand_mentioned=True,
        brand_rank=list_rank(text, offset),
        sentiment=evaluate_sentiment(text, offset),
        market_position=classify_market_position(text, offset),
        competitors=competitors,
    )


def build_analyzed_response(
    prompt: Prompt | str,
    answer: RawAnswer,
    brand_name: str,
    competitor_names: list[str] | None = None,
    timestamp: datetime | str | None = None,
) -> AnalyzedResponse:
    """Wrap analyze() for one successful provider answer."""
    prompt_text = prompt.text if isinstance(prompt, Prompt) else prompt
    ts = parse_timestamp(timestamp) if timestamp is not None else datetime.now(timezone.utc)
    result = analyze(answer.text, brand_name, competitor_names)

    logger.debug(
        "Analyzed %s answer: brand_mentioned=%s rank=%s competitors=%d",
        answer.provider.value,
        result.brand_mentioned,
        result.brand_rank,
        len(result.competitors),
    )

    return AnalyzedResponse(
        prompt=prompt_text,
        provider=answer.provider,
        model=answer.model,
        response_text=answer.text,
        brand_mentioned=result.brand_mentioned,
        brand_position=result.brand_rank,
        competitors_mentioned=tuple(result.competitors_mentioned),
        sentiment=result.sentiment,
        market_position_label=result.market_position.value,
        timestamp=ts,
    )
