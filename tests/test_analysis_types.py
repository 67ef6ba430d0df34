"""Tests for analysis DTOs and their persisted layout."""

from datetime import datetime, timedelta, timezone

import pytest

from geoscan.analysis.types import (
    AnalyzedResponse,
    DailyMetric,
    ProviderPerformance,
    Sentiment,
    VisibilityMetrics,
    parse_timestamp,
)
from geoscan.core.errors import InvalidInputError
from geoscan.gateway.types import ProviderName, Prompt, PromptIntent


class TestSentiment:
    def test_scores(self):
        assert Sentiment.POSITIVE.score == 1.0
        assert Sentiment.NEUTRAL.score == 0.5
        assert Sentiment.NEGATIVE.score == 0.0


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2026-10-18T10:00:00Z") == datetime(2026, 10, 18, 10, tzinfo=timezone.utc)

    def test_normalized_to_utc(self):
        ts = parse_timestamp("2026-10-18T01:00:00+03:00")
        assert ts == datetime(2026, 10, 17, 22, tzinfo=timezone.utc)
        assert ts.tzinfo == timezone.utc

    def test_naive_rejected(self):
        with pytest.raises(InvalidInputError):
            parse_timestamp("2026-10-18T10:00:00")

    def test_garbage_rejected(self):
        with pytest.raises(InvalidInputError):
            parse_timestamp("yesterday")
        with pytest.raises(InvalidInputError):
            parse_timestamp(None)


class TestAnalyzedResponse:
    def test_day_uses_utc(self, make_response):
        response = make_response(timestamp=datetime(2026, 10, 18, 23, 30, tzinfo=timezone(timedelta(hours=-5))))
        assert response.day == "2026-10-19"

    def test_dict_layout(self, make_response):
        response = make_response(ProviderName.GEMINI, competitors=("Globex",), sentiment=Sentiment.POSITIVE)
        data = response.to_dict()
        assert data["provider"] == "Gemini"
        assert data["sentiment"] == "positive"
        assert data["competitors_mentioned"] == ["Globex"]
        assert AnalyzedResponse.from_dict(data) == response

    def test_from_dict_rejects_unknown_provider(self, make_response):
        data = make_response().to_dict()
        data["provider"] = "DeepSeek"
        with pytest.raises(InvalidInputError):
            AnalyzedResponse.from_dict(data)

    def test_from_dict_rejects_naive_timestamp(self, make_response):
        data = make_response().to_dict()
        data["timestamp"] = "2026-10-18T10:00:00"
        with pytest.raises(InvalidInputError):
            AnalyzedResponse.from_dict(data)


class TestVisibilityMetrics:
    def test_empty(self):
        metrics = VisibilityMetrics.empty()
        assert metrics.history == ()
        assert metrics.daily_metrics == {}
        assert metrics.version == 0
        assert metrics.geo_score_display == 0

    def test_geo_score_display_rounds(self):
        assert VisibilityMetrics(geo_score=66.6).geo_score_display == 67

    def test_dict_layout(self, make_response):
        metrics = VisibilityMetrics(
            geo_score=85.0,
            brand_mentions=1,
            history=(make_response(),),
            daily_metrics={"2026-10-18": DailyMetric(date="2026-10-18", brand_mention_rate=100.0, responses=1)},
            version=3,
        )
        data = metrics.to_dict()
        assert data["daily_metrics"][0]["date"] == "2026-10-18"
        assert VisibilityMetrics.from_dict(data) == metrics

    def test_dict_carries_competitor_and_provider_breakdown(self):
        metrics = VisibilityMetrics(
            competitor_scores={"Globex": 40},
            provider_breakdown={
                "ChatGPT": ProviderPerformance("ChatGPT", responses=4, brand_mentions=1),
                "Gemini": ProviderPerformance("Gemini", responses=2, brand_mentions=2),
            },
        )
        data = metrics.to_dict()

        assert data["competitor_scores"] == {"Globex": 40}
        assert data["provider_breakdown"][0]["brand_mention_rate"] == 25.0
        assert data["models_monitored"] == 2
        assert data["top_provider"] == "Gemini"
        assert VisibilityMetrics.from_dict(data) == metrics


class TestPrompt:
    def test_for_industry(self):
        prompt = Prompt("best CRM tools", PromptIntent.DISCOVERY)
        scoped = prompt.for_industry("SaaS")
        assert scoped.text == "best CRM tools from SaaS industry"
        assert scoped.intent == PromptIntent.DISCOVERY

    def test_for_empty_industry_is_unchanged(self):
        prompt = Prompt("best CRM tools")
        assert prompt.for_industry("") is prompt
        assert prompt.for_industry(None) is prompt

    def test_coerce(self):
        assert Prompt.coerce("q") == Prompt("q")
        assert Prompt.coerce({"query": "q", "intent": "High Intent", "volume": "Low"}).intent == PromptIntent.HIGH_INTENT
