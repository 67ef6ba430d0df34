"""Base provider client — one prompt to one model, one attempt.

Each concrete client wraps exactly one vendor's wire protocol (payload,
auth headers, JSON parsing). ``query()`` never raises for vendor-side
problems: timeouts, HTTP errors and malformed bodies come back as a
RawAnswer carrying a ProviderError, so the orchestrator can tell
"this provider failed" apart from "all providers failed".

No retries here; the orchestrator owns the fallback policy.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace

import httpx

from geoscan.core.errors import ProviderError
from geoscan.gateway.types import ProviderName, RawAnswer

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7


@dataclass
class ParsedResponse:
    """Fields every vendor parser extracts from a response body."""

    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class BaseProviderClient(ABC):
    """Base class for all provider clients."""

    provider: ProviderName
    api_url: str = ""
    default_model: str = ""
    pricing: dict[str, dict[str, float]] = {}

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.api_key = api_key
        self.model = model or self.default_model
        self.max_tokens = max_tokens
        self.temperature = temperature

    # -- vendor protocol -------------------------------------------------

    def request_url(self) -> str:
        return self.api_url

    @abstractmethod
    def build_payload(self, prompt: str) -> dict:
        """JSON body for a single-turn prompt."""
        ...

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        ...

    @abstractmethod
    def parse_response(self, data: dict) -> ParsedResponse:
        """Extract the answer. Raises KeyError/IndexError/TypeError/ValueError on unexpected shapes."""
        ...

    # -- public API ------------------------------------------------------

    async def query(self, prompt: str, timeout: float) -> RawAnswer:
        """Send *prompt* and return the raw answer or an error marker."""
        if not self.api_key:
            return RawAnswer.failed(self.provider, "API key not configured", kind=ProviderError.HTTP)

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(
                    self.request_url(),
                    json=self.build_payload(prompt),
                    headers=self.build_headers(),
                )

            if resp.status_code == 429:
                answer = RawAnswer.failed(
                    self.provider,
                    f"Rate limited by {self.provider.value}",
                    kind=ProviderError.RATE_LIMITED,
                    status_code=429,
                )
            elif resp.status_code >= 400:
                error_msg = self._error_message(resp)
                logger.error(
                    "%s API %d for model=%s: %s",
                    self.provider.value,
                    resp.status_code,
                    self.model,
                    error_msg,
                )
                answer = RawAnswer.failed(
                    self.provider,
                    f"HTTP {resp.status_code}: {error_msg}",
                    kind=ProviderError.HTTP,
                    status_code=resp.status_code,
                )
            else:
                parsed = self.parse_response(resp.json())
                if not (parsed.text or "").strip():
                    raise ValueError("no answer text in response")
                answer = RawAnswer(
                    provider=self.provider,
                    text=parsed.text,
                    model=parsed.model or self.model,
                    tokens=parsed.input_tokens + parsed.output_tokens,
                    cost_usd=self._calculate_cost(parsed.input_tokens, parsed.output_tokens),
                )

        except httpx.TimeoutException:
            answer = RawAnswer.failed(self.provider, f"Timeout after {timeout}s", kind=ProviderError.TIMEOUT)
        except httpx.HTTPError as e:
            answer = RawAnswer.failed(self.provider, f"{type(e).__name__}: {e}", kind=ProviderError.TRANSPORT)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("%s returned an unexpected response body: %r", self.provider.value, e)
            answer = RawAnswer.failed(
                self.provider,
                f"Malformed response: {type(e).__name__}: {e}",
                kind=ProviderError.MALFORMED,
            )

        return replace(answer, latency_ms=int((time.monotonic() - start) * 1000))

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text[:500]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])[:500]
        if isinstance(error, str):
            return error[:500]
        return resp.text[:500]

    def _calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Calculate cost in USD based on model pricing (0 for unknown models)."""
        pricing = self.pricing.get(self.model) or self.pricing.get(self.default_model)
        if not pricing:
            return 0.0
        cost = (input_tokens * pricing["input"] + output_tokens * pricing["output"]) / 1_000_000
        return round(cost, 6)
