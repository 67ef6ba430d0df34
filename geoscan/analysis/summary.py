"""Per-scan summary — how many models mentioned the brand, and where."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from geoscan.analysis.types import AnalyzedResponse


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass
class ScanSummary:
    total_responses: int = 0
    brand_mentions: int = 0
    mention_rate: int = 0  # percent, rounded
    average_position: int | None = None
    visible_providers: list[str] = field(default_factory=list)
    text: str = ""

    def to_dict(self) -> dict:
        return {
            "total_responses": self.total_responses,
            "brand_mentions": self.brand_mentions,
            "mention_rate": self.mention_rate,
            "average_position": self.average_position,
            "visible_providers": list(self.visible_providers),
            "text": self.text,
        }


def summarize_scan(responses: list[AnalyzedResponse], brand_name: str) -> ScanSummary:
    """Summarize one scan's analyzed responses for display."""
    total = len(responses)
    visible = [r for r in responses if r.brand_mentioned]
    mentions = len(visible)
    rate = round_half_up(mentions / total * 100) if total else 0

    positions = [r.brand_position for r in responses if r.brand_position is not None]
    average_position = round_half_up(sum(positions) / len(positions)) if positions else None

    providers: list[str] = []
    for r in visible:
        if r.provider.value not in providers:
            providers.append(r.provider.value)
    names = ", ".join(providers)

    if mentions == 0:
        text = f"{brand_name} was not mentioned by any of the {total} AI models for this prompt."
    elif mentions == total:
        text = f"{brand_name} was mentioned by all {total} AI models: {names}."
    else:
        text = f"{brand_name} was mentioned by {mentions} of {total} AI models ({rate}%): {names}."

    return ScanSummary(
        total_responses=total,
        brand_mentions=mentions,
        mention_rate=rate,
        average_position=average_position,
        visible_providers=providers,
        text=text,
    )


def mention_change(current: int, previous: int | None) -> int | None:
    """Percent change in brand mentions versus the previous scan.

    None when there is no previous scan or it had zero mentions.
    """
    if not previous:
        return None
    return round_half_up((current - previous) / previous * 100)
