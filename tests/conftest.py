import asyncio
from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from geoscan.analysis.types import AnalyzedResponse, Sentiment, parse_timestamp
from geoscan.core.config import settings
from geoscan.db import models  # noqa: F401
from geoscan.db.base import Base
from geoscan.gateway.types import ProviderName, RawAnswer

# Never read real credentials in tests
settings.app_env = "development"
settings.sentry_dsn = ""


class FakeProviderClient:
    """Stand-in for a provider client: fixed answer, error marker, exception or delay."""

    def __init__(
        self,
        provider: ProviderName,
        text: str = "",
        *,
        error_kind: str | None = None,
        exc: Exception | None = None,
        delay: float = 0.0,
    ):
        self.provider = provider
        self.text = text
        self.error_kind = error_kind
        self.exc = exc
        self.delay = delay
        self.calls: list[tuple[str, float]] = []

    async def query(self, prompt: str, timeout: float) -> RawAnswer:
        self.calls.append((prompt, timeout))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        if self.error_kind:
            return RawAnswer.failed(self.provider, f"{self.provider.value} failed", kind=self.error_kind)
        return RawAnswer(provider=self.provider, text=self.text, model=f"{self.provider.value.lower()}-test")


@pytest.fixture
def fake_client():
    return FakeProviderClient


def _make_response(
    provider: ProviderName = ProviderName.CHATGPT,
    *,
    brand_mentioned: bool = True,
    competitors: tuple[str, ...] = (),
    sentiment: Sentiment = Sentiment.NEUTRAL,
    position: int | None = None,
    timestamp: str | datetime = "2026-10-18T10:00:00+00:00",
    prompt: str = "best CRM tools",
    response_id: str | None = None,
) -> AnalyzedResponse:
    kwargs = {}
    if response_id is not None:
        kwargs["response_id"] = response_id
    return AnalyzedResponse(
        prompt=prompt,
        provider=provider,
        response_text="...",
        brand_mentioned=brand_mentioned,
        brand_position=position,
        competitors_mentioned=tuple(competitors),
        sentiment=sentiment,
        market_position_label="Mentioned Brand" if brand_mentioned else "",
        timestamp=parse_timestamp(timestamp),
        **kwargs,
    )


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
async def session_factory():
    """In-memory SQLite shared across sessions of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
