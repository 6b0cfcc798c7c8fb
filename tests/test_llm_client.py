"""Tests for the LLM client layer."""

import asyncio

import httpx
import pytest

from pitwall.config import Settings
from pitwall.core.exceptions import LLMException
from pitwall.services.llm_client import DisabledLLMClient, GeminiLLMClient, get_llm_client


def fake_post(status_code=200, body=None, calls=None):
    """Replacement for ``httpx.AsyncClient.post`` returning a canned response."""

    async def _post(self, url, **kwargs):
        if calls is not None:
            calls.append((url, kwargs))
        return httpx.Response(status_code, json=body or {}, request=httpx.Request("POST", url))

    return _post


@pytest.fixture
def gemini():
    return GeminiLLMClient(Settings(llm_provider="gemini", llm_api_key="test-key"))


class TestGeminiClient:
    """Test Gemini request building, response parsing and error mapping."""

    def test_answer_from_first_candidate(self, gemini, monkeypatch):
        calls = []
        body = {"candidates": [{"content": {"parts": [{"text": "  Box this lap.  "}]}}]}
        monkeypatch.setattr(httpx.AsyncClient, "post", fake_post(body=body, calls=calls))

        answer = asyncio.run(gemini.ask("system", "Fuel ok?"))

        assert answer == "Box this lap."
        url, kwargs = calls[0]
        assert url.endswith("/v1beta/models/gemini-2.5-flash:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "system\n\nFuel ok?"

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"candidates": []},
            {"candidates": [{"content": {"parts": []}}]},
            {"candidates": [{"content": {"parts": [{"text": "   "}]}}]},
        ],
    )
    def test_empty_answer_raises(self, gemini, monkeypatch, body):
        monkeypatch.setattr(httpx.AsyncClient, "post", fake_post(body=body))

        with pytest.raises(LLMException, match="Empty response"):
            asyncio.run(gemini.ask("system", "Fuel ok?"))

    @pytest.mark.parametrize(
        "status_code, message",
        [
            (429, "quota exceeded"),
            (404, "model not found"),
            (500, "HTTP error: 500"),
        ],
    )
    def test_http_errors_mapped(self, gemini, monkeypatch, status_code, message):
        monkeypatch.setattr(httpx.AsyncClient, "post", fake_post(status_code=status_code))

        with pytest.raises(LLMException, match=message):
            asyncio.run(gemini.ask("system", "Fuel ok?"))

    def test_missing_api_key(self):
        client = GeminiLLMClient(Settings(llm_provider="gemini", llm_api_key=None))

        with pytest.raises(LLMException, match="API key"):
            asyncio.run(client.ask("system", "Fuel ok?"))


class TestClientFactory:
    """Test provider selection."""

    def test_gemini(self):
        assert isinstance(get_llm_client(Settings(llm_provider="gemini")), GeminiLLMClient)

    def test_disabled_always_raises(self):
        client = get_llm_client(Settings(llm_provider="disabled"))

        assert isinstance(client, DisabledLLMClient)
        with pytest.raises(LLMException):
            asyncio.run(client.ask("system", "Fuel ok?"))

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_llm_client(Settings(llm_provider="carrier-pigeon"))
