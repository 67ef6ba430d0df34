from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL (metrics repository)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "geoscan"
    postgres_password: str = "changeme"
    postgres_db: str = "geoscan"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker + result backend)
    redis_url: str = "redis://localhost:6379/0"

    # Provider credentials
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""
    perplexity_api_key: str = ""

    # Provider models
    openai_model: str = "gpt-4-turbo"
    anthropic_model: str = "claude-3-sonnet-20240229"
    gemini_model: str = "gemini-1.5-pro"
    perplexity_model: str = "sonar"

    # Generation parameters shared by all providers
    max_tokens: int = 1000
    temperature: float = 0.7

    # Scan orchestration
    enabled_providers: str = "ChatGPT,Claude,Gemini"  # comma-separated, dispatch order
    fallback_provider: str = "ChatGPT"  # empty to disable the fallback phase
    provider_timeout_seconds: float = 10.0
    fallback_timeout_seconds: float = 30.0
    inter_prompt_delay_seconds: float = 2.0
    provider_rpm: str = ""  # e.g. "ChatGPT=60,Gemini=14"; empty = unlimited

    # App
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    @property
    def enabled_provider_names(self) -> list[str]:
        return [p.strip() for p in self.enabled_providers.split(",") if p.strip()]

    @property
    def provider_rpm_limits(self) -> dict[str, int]:
        """Parse ``provider_rpm`` into {provider: rpm}. Malformed pairs are skipped."""
        limits: dict[str, int] = {}
        for pair in self.provider_rpm.split(","):
            name, sep, value = pair.partition("=")
            if not sep or not name.strip():
                continue
            try:
                rpm = int(value.strip())
            except ValueError:
                continue
            if rpm > 0:
                limits[name.strip()] = rpm
        return limits


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on worker startup outside of tests."""
    errors: list[str] = []

    from geoscan.gateway.types import ProviderName

    known = {p.value for p in ProviderName}
    unknown = [p for p in settings.enabled_provider_names if p not in known]
    if unknown:
        errors.append(f"ENABLED_PROVIDERS contains unknown providers: {', '.join(unknown)}")

    if not settings.enabled_provider_names:
        errors.append("ENABLED_PROVIDERS must name at least one provider")

    if settings.fallback_provider and settings.fallback_provider not in known:
        errors.append(f"FALLBACK_PROVIDER {settings.fallback_provider!r} is not a known provider")

    if settings.provider_timeout_seconds <= 0:
        errors.append("PROVIDER_TIMEOUT_SECONDS must be positive")

    if settings.app_env == "production":
        if settings.postgres_password in ("changeme", ""):
            errors.append("POSTGRES_PASSWORD must be set in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
