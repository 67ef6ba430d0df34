"""Core types and DTOs for the Scan Orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from geoscan.core.errors import ProviderError

if TYPE_CHECKING:
    from geoscan.analysis.summary import ScanSummary
    from geoscan.analysis.types import AnalyzedResponse


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProviderName(str, Enum):
    """Supported AI model providers."""

    CHATGPT = "ChatGPT"
    CLAUDE = "Claude"
    GEMINI = "Gemini"
    PERPLEXITY = "Perplexity"

    def __str__(self) -> str:
        return self.value


class PromptIntent(str, Enum):
    DISCOVERY = "Discovery"
    HIGH_INTENT = "High Intent"
    MEDIUM_INTENT = "Medium Intent"
    LOW_INTENT = "Low Intent"


class PromptVolume(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


class ScanStatus(str, Enum):
    """State of a single prompt scan.

    DISPATCHED → COLLECTING → SUCCEEDED | FALLBACK_SUCCEEDED | FAILED
    """

    DISPATCHED = "dispatched"
    COLLECTING = "collecting"
    SUCCEEDED = "succeeded"
    FALLBACK_SUCCEEDED = "fallback_succeeded"
    FAILED = "failed"


class ScanPhase(str, Enum):
    PARALLEL = "parallel"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# Prompt: input to a scan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Prompt:
    """A market-research question sent to every provider.

    Supplied by prompt generation (out of scope); never mutated.
    """

    text: str
    intent: PromptIntent | None = None
    volume: PromptVolume | None = None

    def for_industry(self, industry: str | None) -> Prompt:
        """Return a copy scoped to *industry*: "<text> from <industry> industry"."""
        if not industry or not industry.strip():
            return self
        return Prompt(
            text=f"{self.text} from {industry.strip()} industry",
            intent=self.intent,
            volume=self.volume,
        )

    @classmethod
    def coerce(cls, value: Prompt | str | dict) -> Prompt:
        """Accept a Prompt, a bare string or a {"query"/"text", "intent", "volume"} dict."""
        if isinstance(value, Prompt):
            return value
        if isinstance(value, str):
            return cls(text=value)
        text = value.get("text") or value.get("query") or ""
        intent = value.get("intent")
        volume = value.get("volume")
        return cls(
            text=text,
            intent=PromptIntent(intent) if intent else None,
            volume=PromptVolume(volume) if volume else None,
        )


# ---------------------------------------------------------------------------
# RawAnswer: output of one provider call
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawAnswer:
    """Raw text answer (or error) from one provider for one prompt. Never mutated."""

    provider: ProviderName
    text: str = ""
    model: str = ""
    tokens: int = 0
    cost_usd: float = 0.0
    latency_ms: int = 0
    error: ProviderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, provider: ProviderName, cause: str, kind: str, status_code: int | None = None) -> RawAnswer:
        return cls(provider=provider, error=ProviderError(provider, cause, kind=kind, status_code=status_code))


@dataclass
class ProviderFailure:
    """A provider that produced no answer for a prompt."""

    provider: ProviderName
    prompt: str
    error: ProviderError
    phase: ScanPhase = ScanPhase.PARALLEL

    def to_dict(self) -> dict:
        return {
            "provider": self.provider.value,
            "prompt": self.prompt,
            "phase": self.phase.value,
            "error": self.error.to_dict(),
        }


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------


@dataclass
class PromptScan:
    """Result of fanning one prompt out to the active provider set."""

    prompt: Prompt
    status: ScanStatus = ScanStatus.DISPATCHED
    answers: list[RawAnswer] = field(default_factory=list)  # successful only, dispatch order
    failures: list[ProviderFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status in (ScanStatus.SUCCEEDED, ScanStatus.FALLBACK_SUCCEEDED)


@dataclass
class ScanOutcome:
    """Uniform result of RunScan: one list of analyzed responses regardless of provider count."""

    brand: str
    analyzed_responses: list[AnalyzedResponse] = field(default_factory=list)
    failures: list[ProviderFailure] = field(default_factory=list)
    prompt_scans: list[PromptScan] = field(default_factory=list)
    summary: ScanSummary | None = None

    @property
    def failed_providers(self) -> list[ProviderName]:
        return [f.provider for f in self.failures]

    @property
    def status(self) -> ScanStatus:
        if not self.prompt_scans or not any(s.succeeded for s in self.prompt_scans):
            return ScanStatus.FAILED
        if any(s.status == ScanStatus.FALLBACK_SUCCEEDED for s in self.prompt_scans):
            return ScanStatus.FALLBACK_SUCCEEDED
        return ScanStatus.SUCCEEDED

    def to_dict(self) -> dict:
        return {
            "brand": self.brand,
            "status": self.status.value,
            "analyzed_responses": [r.to_dict() for r in self.analyzed_responses],
            "failures": [f.to_dict() for f in self.failures],
            "failed_providers": [p.value for p in self.failed_providers],
            "summary": self.summary.to_dict() if self.summary else None,
        }
