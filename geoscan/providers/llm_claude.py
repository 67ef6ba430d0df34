"""Anthropic Claude provider client (Messages API)."""

from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_base import BaseProviderClient, ParsedResponse

# Pricing per 1M tokens
MODEL_PRICING = {
    "claude-3-sonnet-20240229": {"input": 3.00, "output": 15.00},
    "claude-3-haiku-20240307": {"input": 0.25, "output": 1.25},
    "claude-3-5-sonnet-20241022": {"input": 3.00, "output": 15.00},
    "claude-3-opus-20240229": {"input": 15.00, "output": 75.00},
}

DEFAULT_MODEL = "claude-3-sonnet-20240229"
API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class ClaudeClient(BaseProviderClient):
    """Query Claude through the Anthropic Messages API."""

    provider = ProviderName.CLAUDE
    api_url = API_URL
    default_model = DEFAULT_MODEL
    pricing = MODEL_PRICING

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def parse_response(self, data: dict) -> ParsedResponse:
        # content is a list of blocks; only text blocks carry the answer
        blocks = data["content"]
        text = "".join(b.get("text", "") for b in blocks if b.get("type", "text") == "text")
        usage = data.get("usage") or {}
        return ParsedResponse(
            text=text,
            model=data.get("model", self.model),
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )
