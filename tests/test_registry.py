"""Tests for ProviderRegistry."""

import pytest

from geoscan.core.config import Settings
from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_gemini import GeminiClient
from geoscan.providers.llm_openai import OpenAiClient
from geoscan.providers.registry import ProviderRegistry, parse_provider


class TestParseProvider:
    def test_by_value(self):
        assert parse_provider("ChatGPT") == ProviderName.CHATGPT

    def test_case_insensitive(self):
        assert parse_provider("gemini") == ProviderName.GEMINI
        assert parse_provider(" CLAUDE ") == ProviderName.CLAUDE

    def test_enum_passthrough(self):
        assert parse_provider(ProviderName.PERPLEXITY) == ProviderName.PERPLEXITY

    def test_unknown(self):
        assert parse_provider("deepseek") is None
        assert parse_provider("") is None


class TestRegistry:
    def test_register_and_get(self, fake_client):
        client = fake_client(ProviderName.CLAUDE, "hi")
        registry = ProviderRegistry()
        registry.register("claude", client)

        assert registry.get(ProviderName.CLAUDE) is client
        assert "Claude" in registry
        assert len(registry) == 1

    def test_register_unknown_raises(self, fake_client):
        with pytest.raises(ValueError):
            ProviderRegistry().register("deepseek", fake_client(ProviderName.CHATGPT))

    def test_resolve_keeps_caller_order_and_skips_unknown(self, fake_client):
        registry = ProviderRegistry({
            ProviderName.CHATGPT: fake_client(ProviderName.CHATGPT),
            ProviderName.GEMINI: fake_client(ProviderName.GEMINI),
        })
        resolved = registry.resolve(["Gemini", "deepseek", "Claude", "ChatGPT", "gemini"])
        assert [name for name, _ in resolved] == [ProviderName.GEMINI, ProviderName.CHATGPT]

    def test_registries_are_independent(self, fake_client):
        first = ProviderRegistry({ProviderName.CHATGPT: fake_client(ProviderName.CHATGPT)})
        second = ProviderRegistry()
        assert len(first) == 1
        assert len(second) == 0


class TestFromSettings:
    def test_skips_providers_without_key(self):
        settings = Settings(
            _env_file=None,
            openai_api_key="sk-test",
            anthropic_api_key="",
            gemini_api_key="g-test",
            enabled_providers="ChatGPT,Claude,Gemini",
            gemini_model="gemini-2.0-flash",
        )
        registry = ProviderRegistry.from_settings(settings)

        assert registry.names() == [ProviderName.CHATGPT, ProviderName.GEMINI]
        assert isinstance(registry.get("ChatGPT"), OpenAiClient)
        gemini = registry.get("Gemini")
        assert isinstance(gemini, GeminiClient)
        assert gemini.model == "gemini-2.0-flash"
        assert gemini.max_tokens == 1000

    def test_fallback_registered_even_if_not_enabled(self):
        settings = Settings(
            _env_file=None,
            openai_api_key="sk-test",
            perplexity_api_key="p-test",
            enabled_providers="Perplexity",
            fallback_provider="ChatGPT",
        )
        registry = ProviderRegistry.from_settings(settings)
        assert registry.names() == [ProviderName.PERPLEXITY, ProviderName.CHATGPT]

    def test_unknown_provider_ignored(self):
        settings = Settings(
            _env_file=None,
            openai_api_key="sk-test",
            enabled_providers="ChatGPT,YandexGPT",
            fallback_provider="",
        )
        registry = ProviderRegistry.from_settings(settings)
        assert registry.names() == [ProviderName.CHATGPT]
