"""Context Evaluator — rule-based market position and sentiment.

Both classifiers look at a fixed character window around the first
occurrence of the brand:

  - market position:  ±100 characters, substring keywords in priority order
  - sentiment:        ±150 characters, whole-word lexicon counts
"""

from __future__ import annotations

import logging
import re

from geoscan.analysis.types import MarketPosition, Sentiment

logger = logging.getLogger(__name__)

MARKET_POSITION_WINDOW = 100
SENTIMENT_WINDOW = 150

# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------

# Checked in order; first hit wins
_MARKET_POSITION_KEYWORDS: list[tuple[MarketPosition, tuple[str, ...]]] = [
    (MarketPosition.MARKET_LEADER, ("leader", "top", "best")),
    (MarketPosition.WELL_KNOWN, ("popular", "well-known")),
    (MarketPosition.EMERGING, ("emerging", "growing")),
    (MarketPosition.ALTERNATIVE, ("alternative", "competitor")),
]

POSITIVE_WORDS = frozenset({
    "great", "excellent", "good", "best", "top", "leading", "innovative",
    "trusted", "reliable", "recommended", "quality", "superior", "leader",
})

NEGATIVE_WORDS = frozenset({
    "bad", "poor", "worst", "avoid", "disappointing", "expensive",
    "overpriced", "unreliable", "outdated", "limited", "problem", "issue",
})

# \b-delimited: "top-rated" and "issue's" count, "topology" and "issues" do not
_POSITIVE_PATTERNS = [re.compile(rf"\b{re.escape(w)}\b", re.IGNORECASE) for w in sorted(POSITIVE_WORDS)]
_NEGATIVE_PATTERNS = [re.compile(rf"\b{re.escape(w)}\b", re.IGNORECASE) for w in sorted(NEGATIVE_WORDS)]


def context_window(text: str, offset: int, radius: int) -> str:
    """Slice ``[offset - radius, offset + radius)`` clamped to the text."""
    return text[max(0, offset - radius):offset + radius]


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


def classify_market_position(text: str, offset: int) -> MarketPosition:
    """Market position label for the brand found at ``offset``."""
    if offset < 0:
        return MarketPosition.NOT_MENTIONED

    window = context_window(text, offset, MARKET_POSITION_WINDOW).lower()
    for label, keywords in _MARKET_POSITION_KEYWORDS:
        if any(k in window for k in keywords):
            return label
    return MarketPosition.MENTIONED


def count_lexicon_hits(context: str) -> tuple[int, int]:
    """(positive, negative) word-boundary hit counts; repeats count each time."""
    positive = sum(len(p.findall(context)) for p in _POSITIVE_PATTERNS)
    negative = sum(len(p.findall(context)) for p in _NEGATIVE_PATTERNS)
    return positive, negative


def evaluate_sentiment(text: str, offset: int) -> Sentiment:
    """Coarse sentiment for the brand found at ``offset``.

    Never-mentioned brands are always neutral.
    """
    if offset < 0:
        return Sentiment.NEUTRAL

    positive, negative = count_lexicon_hits(context_window(text, offset, SENTIMENT_WINDOW))
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL
