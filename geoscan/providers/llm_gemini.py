"""Google Gemini provider client (generateContent API)."""

from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_base import BaseProviderClient, ParsedResponse

# Pricing per 1M tokens
MODEL_PRICING = {
    "gemini-1.5-pro": {"input": 1.25, "output": 5.00},
    "gemini-1.5-flash": {"input": 0.075, "output": 0.30},
    "gemini-2.0-flash": {"input": 0.10, "output": 0.40},
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "gemini-2.5-pro": {"input": 1.25, "output": 10.00},
}

DEFAULT_MODEL = "gemini-1.5-pro"
API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(BaseProviderClient):
    """Query Gemini through the native generateContent endpoint."""

    provider = ProviderName.GEMINI
    default_model = DEFAULT_MODEL
    pricing = MODEL_PRICING

    def request_url(self) -> str:
        return f"{API_BASE}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
                "topP": 0.95,
                "topK": 40,
            },
        }

    def build_headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def parse_response(self, data: dict) -> ParsedResponse:
        candidate = data["candidates"][0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts)

        # SAFETY-filtered candidates come back without parts
        if not text and candidate.get("finishReason") == "SAFETY":
            raise ValueError("response blocked by safety filter")

        usage = data.get("usageMetadata") or {}
        return ParsedResponse(
            text=text,
            model=data.get("modelVersion", self.model),
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
        )
