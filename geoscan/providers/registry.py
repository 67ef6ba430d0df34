"""Provider registry — config-driven name → client binding."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_base import BaseProviderClient

if TYPE_CHECKING:
    from geoscan.core.config import Settings

logger = logging.getLogger(__name__)

# Map of provider → (module_path, class_name, api_key_field, model_field)
_PROVIDER_MAP: dict[ProviderName, tuple[str, str, str, str]] = {
    ProviderName.CHATGPT: ("geoscan.providers.llm_openai", "OpenAiClient", "openai_api_key", "openai_model"),
    ProviderName.CLAUDE: ("geoscan.providers.llm_claude", "ClaudeClient", "anthropic_api_key", "anthropic_model"),
    ProviderName.GEMINI: ("geoscan.providers.llm_gemini", "GeminiClient", "gemini_api_key", "gemini_model"),
    ProviderName.PERPLEXITY: (
        "geoscan.providers.llm_perplexity",
        "PerplexityClient",
        "perplexity_api_key",
        "perplexity_model",
    ),
}


def parse_provider(name: ProviderName | str) -> ProviderName | None:
    """Resolve a provider name case-insensitively. Returns None if unknown."""
    if isinstance(name, ProviderName):
        return name
    key = (name or "").strip().lower()
    for provider in ProviderName:
        if provider.value.lower() == key or provider.name.lower() == key:
            return provider
    return None


class ProviderRegistry:
    """Holds one client per provider. Built per service instance, never global."""

    def __init__(self, clients: dict[ProviderName, BaseProviderClient] | None = None):
        self._clients: dict[ProviderName, BaseProviderClient] = {}
        for name, client in (clients or {}).items():
            self.register(name, client)

    def register(self, name: ProviderName | str, client: BaseProviderClient) -> None:
        provider = parse_provider(name)
        if provider is None:
            raise ValueError(f"Unknown provider: {name}")
        self._clients[provider] = client

    def get(self, name: ProviderName | str) -> BaseProviderClient | None:
        provider = parse_provider(name)
        return self._clients.get(provider) if provider else None

    def names(self) -> list[ProviderName]:
        return list(self._clients)

    def resolve(self, names: list[ProviderName | str]) -> list[tuple[ProviderName, BaseProviderClient]]:
        """Return (name, client) pairs in the caller's order, skipping unknown or unregistered names."""
        resolved: list[tuple[ProviderName, BaseProviderClient]] = []
        seen: set[ProviderName] = set()
        for name in names:
            provider = parse_provider(name)
            if provider is None or provider in seen:
                continue
            client = self._clients.get(provider)
            if client is not None:
                resolved.append((provider, client))
                seen.add(provider)
        return resolved

    def __contains__(self, name: object) -> bool:
        provider = parse_provider(name) if isinstance(name, str) else None
        return provider is not None and provider in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderRegistry:
        """Build clients for every enabled provider that has an API key configured.

        The fallback provider is registered too even if not in the enabled set.
        """
        registry = cls()
        wanted = list(settings.enabled_provider_names)
        if settings.fallback_provider and settings.fallback_provider not in wanted:
            wanted.append(settings.fallback_provider)

        for name in wanted:
            provider = parse_provider(name)
            if provider is None:
                logger.warning("Unknown provider in configuration: %s", name)
                continue

            module_path, class_name, key_field, model_field = _PROVIDER_MAP[provider]
            api_key = getattr(settings, key_field, "")
            if not api_key:
                logger.warning("API key not configured for %s — provider skipped", provider.value)
                continue

            module = importlib.import_module(module_path)
            client_cls = getattr(module, class_name)
            registry.register(
                provider,
                client_cls(
                    api_key=api_key,
                    model=getattr(settings, model_field, None),
                    max_tokens=settings.max_tokens,
                    temperature=settings.temperature,
                ),
            )

        logger.info("Provider registry built: %s", [p.value for p in registry.names()])
        return registry
