"""OpenAI (ChatGPT) provider client."""

from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_base import BaseProviderClient, ParsedResponse

# Pricing per 1M tokens
MODEL_PRICING = {
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
}

DEFAULT_MODEL = "gpt-4-turbo"
API_URL = "https://api.openai.com/v1/chat/completions"

SYSTEM_PROMPT = (
    "You are a helpful assistant providing information about products, services, and companies. "
    "Answer questions directly and mention relevant companies in your response."
)


class OpenAiClient(BaseProviderClient):
    """Query ChatGPT through the Chat Completions API."""

    provider = ProviderName.CHATGPT
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
