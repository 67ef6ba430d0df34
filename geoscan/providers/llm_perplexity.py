"""Perplexity provider client (OpenAI-compatible chat completions)."""

from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_base import BaseProviderClient, ParsedResponse
from geoscan.providers.llm_openai import SYSTEM_PROMPT

# Pricing per 1M tokens
MODEL_PRICING = {
    "sonar": {"input": 1.00, "output": 1.00},
    "sonar-pro": {"input": 3.00, "output": 15.00},
}

DEFAULT_MODEL = "sonar"
API_URL = "https://api.perplexity.ai/chat/completions"


class PerplexityClient(BaseProviderClient):
    """Query Perplexity. Native citations are not needed for mention analysis and are ignored."""

    provider = ProviderName.PERPLEXITY
    api_url = API_URL
    default_model = DEFAULT_MODEL
    pricing = MODEL_PRICING

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def parse_response(self, data: dict) -> ParsedResponse:
        choice = data["choices"][0]
        usage = data.get("usage") or {}
        return ParsedResponse(
            text=choice["message"]["content"] or "",
            model=data.get("model", self.model),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
        )
