"""Error taxonomy for the scan engine.

  - ProviderError:            one provider failed (recoverable, absorbed by the orchestrator)
  - AllProvidersFailedError:  no provider (fallback included) produced an answer
  - InvalidInputError:        rejected before any provider call
  - PersistenceError:         repository load/save failed; carries the computed metrics
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from geoscan.analysis.types import VisibilityMetrics


def _provider_value(provider) -> str:
    return getattr(provider, "value", provider)


class GeoScanError(Exception):
    """Base class for all engine errors."""


class ProviderError(GeoScanError):
    """A single provider call failed.

    Carried as a value on RawAnswer / ProviderFailure; the orchestrator
    never raises it past its own boundary.
    """

    TIMEOUT = "timeout"
    HTTP = "http"
    RATE_LIMITED = "rate_limited"
    MALFORMED = "malformed"
    TRANSPORT = "transport"
    UNEXPECTED = "unexpected"

    def __init__(self, provider: str, cause: str, kind: str = UNEXPECTED, status_code: int | None = None):
        super().__init__(f"{_provider_value(provider)}: {cause}")
        self.provider = provider
        self.cause = cause
        self.kind = kind
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"ProviderError(provider={self.provider!r}, kind={self.kind!r}, cause={self.cause!r})"

    def to_dict(self) -> dict:
        return {
            "provider": _provider_value(self.provider),
            "kind": self.kind,
            "cause": self.cause,
            "status_code": self.status_code,
        }


class InvalidInputError(GeoScanError, ValueError):
    """Missing or malformed scan input."""


class AllProvidersFailedError(GeoScanError):
    """No visibility data obtainable this scan.

    *outcome* is the ScanOutcome holding every recorded provider failure.
    """

    def __init__(self, message: str, outcome: Any = None):
        super().__init__(message)
        self.outcome = outcome

    @property
    def failures(self) -> list:
        return list(self.outcome.failures) if self.outcome is not None else []


class PersistenceError(GeoScanError):
    """Repository failure. *metrics* is the snapshot that could not be saved."""

    def __init__(self, message: str, metrics: VisibilityMetrics | None = None):
        super().__init__(message)
        self.metrics = metrics


class ConcurrentUpdateError(PersistenceError):
    """Stored version changed between load and save."""
