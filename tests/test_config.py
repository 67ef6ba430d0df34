"""Tests for settings parsing and startup validation."""

import pytest

from geoscan.core import config
from geoscan.core.config import Settings, validate_settings_for_production


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_defaults():
    s = _settings()
    assert s.enabled_provider_names == ["ChatGPT", "Claude", "Gemini"]
    assert s.fallback_provider == "ChatGPT"
    assert s.provider_timeout_seconds == 10.0
    assert s.fallback_timeout_seconds == 30.0
    assert s.postgres_url.startswith("postgresql+asyncpg://")


def test_enabled_providers_trimmed():
    s = _settings(enabled_providers=" Claude , ,Perplexity ")
    assert s.enabled_provider_names == ["Claude", "Perplexity"]


def test_provider_rpm_limits_skips_malformed_pairs():
    s = _settings(provider_rpm="ChatGPT=60, Gemini = 14,Claude,Perplexity=abc,=5,Zero=0")
    assert s.provider_rpm_limits == {"ChatGPT": 60, "Gemini": 14}


def test_provider_rpm_limits_empty():
    assert _settings().provider_rpm_limits == {}


class TestValidateSettings:
    def test_valid_configuration_passes(self, monkeypatch):
        monkeypatch.setattr(config, "settings", _settings())
        validate_settings_for_production()

    def test_unknown_provider_rejected(self, monkeypatch):
        monkeypatch.setattr(config, "settings", _settings(enabled_providers="ChatGPT,DeepSeek"))
        with pytest.raises(SystemExit, match="DeepSeek"):
            validate_settings_for_production()

    def test_unknown_fallback_rejected(self, monkeypatch):
        monkeypatch.setattr(config, "settings", _settings(fallback_provider="Mistral"))
        with pytest.raises(SystemExit, match="FALLBACK_PROVIDER"):
            validate_settings_for_production()

    def test_production_requires_database_password(self, monkeypatch):
        monkeypatch.setattr(config, "settings", _settings(app_env="production"))
        with pytest.raises(SystemExit, match="POSTGRES_PASSWORD"):
            validate_settings_for_production()

    def test_errors_collected_together(self, monkeypatch):
        monkeypatch.setattr(config, "settings", _settings(enabled_providers="", provider_timeout_seconds=0))
        with pytest.raises(SystemExit) as exc_info:
            validate_settings_for_production()
        message = str(exc_info.value)
        assert "at least one provider" in message
        assert "PROVIDER_TIMEOUT_SECONDS" in message
