"""Tests for provider clients (HTTP mocked)."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from geoscan.core.errors import ProviderError
from geoscan.gateway.types import ProviderName
from geoscan.providers.llm_claude import ANTHROPIC_VERSION, ClaudeClient
from geoscan.providers.llm_gemini import GeminiClient
from geoscan.providers.llm_openai import SYSTEM_PROMPT, OpenAiClient
from geoscan.providers.llm_perplexity import PerplexityClient

_ASYNC_CLIENT = "geoscan.providers.llm_base.httpx.AsyncClient"


def _mock_http(response=None, side_effect=None):
    """Patch httpx.AsyncClient; returns (patcher, MockClient, mock_client)."""
    patcher = patch(_ASYNC_CLIENT)
    MockClient = patcher.start()
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    MockClient.return_value = mock_client
    return patcher, MockClient, mock_client


def _response(status_code=200, data=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data if data is not None else {}
    resp.text = text
    return resp


@pytest.fixture
def openai_client():
    return OpenAiClient(api_key="sk-test-fake-key")


_OPENAI_OK = {
    "choices": [{"message": {"content": "1. Acme Corp is the leader."}, "finish_reason": "stop"}],
    "model": "gpt-4-turbo",
    "usage": {"prompt_tokens": 50, "completion_tokens": 100, "total_tokens": 150},
}


class TestOpenAiClient:
    @pytest.mark.asyncio
    async def test_success(self, openai_client):
        patcher, _, mock_client = _mock_http(_response(200, _OPENAI_OK))
        try:
            answer = await openai_client.query("best CRM tools", timeout=10.0)
        finally:
            patcher.stop()

        assert answer.ok
        assert answer.provider == ProviderName.CHATGPT
        assert answer.text == "1. Acme Corp is the leader."
        assert answer.model == "gpt-4-turbo"
        assert answer.tokens == 150
        assert answer.cost_usd == round((50 * 10.00 + 100 * 30.00) / 1_000_000, 6)

    @pytest.mark.asyncio
    async def test_payload_and_headers(self, openai_client):
        patcher, MockClient, mock_client = _mock_http(_response(200, _OPENAI_OK))
        try:
            await openai_client.query("best CRM tools", timeout=7.5)
        finally:
            patcher.stop()

        MockClient.assert_called_once_with(timeout=7.5)
        kwargs = mock_client.post.call_args.kwargs
        assert kwargs["json"]["model"] == "gpt-4-turbo"
        assert kwargs["json"]["max_tokens"] == 1000
        assert kwargs["json"]["temperature"] == 0.7
        assert kwargs["json"]["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert kwargs["json"]["messages"][1] == {"role": "user", "content": "best CRM tools"}
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test-fake-key"

    @pytest.mark.asyncio
    async def test_rate_limited(self, openai_client):
        patcher, _, _ = _mock_http(_response(429, {"error": {"message": "Rate limit"}}))
        try:
            answer = await openai_client.query("q", timeout=10.0)
        finally:
            patcher.stop()

        assert not answer.ok
        assert answer.error.kind == ProviderError.RATE_LIMITED
        assert answer.error.status_code == 429

    @pytest.mark.asyncio
    async def test_http_error_extracts_vendor_message(self, openai_client):
        patcher, _, _ = _mock_http(_response(401, {"error": {"message": "Invalid API key"}}))
        try:
            answer = await openai_client.query("q", timeout=10.0)
        finally:
            patcher.stop()

        assert answer.error.kind == ProviderError.HTTP
        assert answer.error.status_code == 401
        assert "Invalid API key" in answer.error.cause

    @pytest.mark.asyncio
    async def test_timeout(self, openai_client):
        patcher, _, _ = _mock_http(side_effect=httpx.ReadTimeout("timed out"))
        try:
            answer = await openai_client.query("q", timeout=3.0)
        finally:
            patcher.stop()

        assert answer.error.kind == ProviderError.TIMEOUT
        assert answer.text == ""

    @pytest.mark.asyncio
    async def test_transport_error(self, openai_client):
        patcher, _, _ = _mock_http(side_effect=httpx.ConnectError("connection refused"))
        try:
            answer = await openai_client.query("q", timeout=3.0)
        finally:
            patcher.stop()

        assert answer.error.kind == ProviderError.TRANSPORT

    @pytest.mark.asyncio
    async def test_malformed_body(self, openai_client):
        patcher, _, _ = _mock_http(_response(200, {"choices": []}))
        try:
            answer = await openai_client.query("q", timeout=3.0)
        finally:
            patcher.stop()

        assert answer.error.kind == ProviderError.MALFORMED

    @pytest.mark.asyncio
    async def test_null_content_is_malformed(self, openai_client):
        data = {"choices": [{"message": {"content": None}, "finish_reason": "stop"}], "model": "gpt-4-turbo"}
        patcher, _, _ = _mock_http(_response(200, data))
        try:
            answer = await openai_client.query("q", timeout=3.0)
        finally:
            patcher.stop()

        assert not answer.ok
        assert answer.error.kind == ProviderError.MALFORMED
        assert answer.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_missing_api_key_skips_network(self):
        client = OpenAiClient(api_key="")
        with patch(_ASYNC_CLIENT) as MockClient:
            answer = await client.query("q", timeout=3.0)

        MockClient.assert_not_called()
        assert answer.error.kind == ProviderError.HTTP
        assert answer.error.cause == "API key not configured"

    def test_cost_unknown_model_uses_default_pricing(self):
        client = OpenAiClient(api_key="k", model="gpt-unknown")
        assert client._calculate_cost(1000, 1000) == round((1000 * 10.00 + 1000 * 30.00) / 1_000_000, 6)


class TestClaudeClient:
    def test_headers(self):
        client = ClaudeClient(api_key="ak-test")
        headers = client.build_headers()
        assert headers["x-api-key"] == "ak-test"
        assert headers["anthropic-version"] == ANTHROPIC_VERSION

    def test_payload(self):
        client = ClaudeClient(api_key="ak-test")
        payload = client.build_payload("hello")
        assert payload["model"] == "claude-3-sonnet-20240229"
        assert payload["max_tokens"] == 1000
        assert payload["messages"] == [{"role": "user", "content": "hello"}]

    @pytest.mark.asyncio
    async def test_success(self):
        data = {
            "content": [{"type": "text", "text": "Globex is popular."}],
            "model": "claude-3-sonnet-20240229",
            "usage": {"input_tokens": 20, "output_tokens": 30},
        }
        patcher, _, mock_client = _mock_http(_response(200, data))
        try:
            answer = await ClaudeClient(api_key="ak-test").query("q", timeout=10.0)
        finally:
            patcher.stop()

        assert answer.ok
        assert answer.provider == ProviderName.CLAUDE
        assert answer.text == "Globex is popular."
        assert answer.tokens == 50
        assert mock_client.post.call_args.args[0] == "https://api.anthropic.com/v1/messages"

    @pytest.mark.asyncio
    async def test_no_text_blocks_is_malformed(self):
        data = {"content": [{"type": "tool_use", "id": "t1"}], "model": "claude-3-sonnet-20240229"}
        patcher, _, _ = _mock_http(_response(200, data))
        try:
            answer = await ClaudeClient(api_key="ak-test").query("q", timeout=10.0)
        finally:
            patcher.stop()

        assert answer.error.kind == ProviderError.MALFORMED


class TestGeminiClient:
    def test_request_url_uses_model(self):
        client = GeminiClient(api_key="g-test", model="gemini-2.0-flash")
        assert client.request_url().endswith("/models/gemini-2.0-flash:generateContent")

    def test_generation_config(self):
        payload = GeminiClient(api_key="g-test").build_payload("hi")
        config = payload["generationConfig"]
        assert config["maxOutputTokens"] == 1000
        assert config["topP"] == 0.95
        assert config["topK"] == 40
        assert payload["contents"] == [{"parts": [{"text": "hi"}]}]

    def test_parse_joins_parts(self):
        data = {
            "candidates": [{"content": {"parts": [{"text": "Acme "}, {"text": "Corp"}]}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 4, "candidatesTokenCount": 6},
            "modelVersion": "gemini-1.5-pro-002",
        }
        parsed = GeminiClient(api_key="g").parse_response(data)
        assert parsed.text == "Acme Corp"
        assert parsed.model == "gemini-1.5-pro-002"
        assert parsed.input_tokens == 4
        assert parsed.output_tokens == 6

    @pytest.mark.asyncio
    async def test_safety_block_is_malformed(self):
        data = {"candidates": [{"finishReason": "SAFETY"}]}
        patcher, _, _ = _mock_http(_response(200, data))
        try:
            answer = await GeminiClient(api_key="g").query("q", timeout=10.0)
        finally:
            patcher.stop()

        assert answer.error.kind == ProviderError.MALFORMED
        assert "safety" in answer.error.cause


class TestPerplexityClient:
    def test_defaults(self):
        client = PerplexityClient(api_key="p")
        assert client.provider == ProviderName.PERPLEXITY
        assert client.model == "sonar"

    def test_payload_is_openai_compatible(self):
        payload = PerplexityClient(api_key="p").build_payload("q")
        assert payload["messages"][-1] == {"role": "user", "content": "q"}
        assert payload["model"] == "sonar"
