import asyncio

import httpx
import pytest

from reality_check.providers.gemini_client import GeminiClient, MISSING_KEY_MESSAGE
from reality_check.domain.exceptions import ConfigurationError, UpstreamError
from reality_check.domain.models import GenerationRequest


class SettingsStub:
    api_key = "test-key-123456"
    http_timeout = 1.0
    gemini_base_url = "https://generativelanguage.googleapis.com/v1beta"


class Resp:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def make_client(resp, calls):
    class Client:
        def __init__(self, *a, **kw):
            calls.append({"init": kw})

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, json=None, headers=None):
            calls.append({"url": url, "json": json, "headers": headers})
            if isinstance(resp, Exception):
                raise resp
            return resp

    return Client


def _request(model="reframe"):
    return GenerationRequest(
        provider="gemini",
        model=model,
        system_instruction="be kind",
        prompt="hello",
        temperature=0.8,
        top_p=0.95,
        top_k=64,
        max_output_tokens=500,
    )


def test_gemini_client_basic(monkeypatch):
    calls = []
    payload = {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": "Here's a "}, {"text": "balanced view"}]},
                "finishReason": "STOP",
            }
        ],
        "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 4, "totalTokenCount": 7},
    }
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(payload=payload), calls))
    result = asyncio.run(GeminiClient(SettingsStub()).generate(_request()))

    assert result.text == "Here's a balanced view"
    assert result.finish_reason == "STOP"
    assert result.usage.total_tokens == 7
    post = calls[-1]
    assert post["url"].endswith("/models/gemini-3-pro-preview:generateContent")
    assert post["headers"]["x-goog-api-key"] == "test-key-123456"
    assert post["json"]["systemInstruction"] == {"parts": [{"text": "be kind"}]}
    assert post["json"]["contents"] == [{"role": "user", "parts": [{"text": "hello"}]}]
    assert post["json"]["generationConfig"] == {
        "temperature": 0.8,
        "topP": 0.95,
        "topK": 64,
        "maxOutputTokens": 500,
    }


def test_gemini_client_unknown_logical_model_passes_through(monkeypatch):
    calls = []
    payload = {"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(payload=payload), calls))
    asyncio.run(GeminiClient(SettingsStub()).generate(_request(model="gemini-2.5-flash")))
    assert calls[-1]["url"].endswith("/models/gemini-2.5-flash:generateContent")


def test_gemini_client_skips_thought_parts(monkeypatch):
    payload = {
        "candidates": [
            {"content": {"parts": [{"text": "thinking...", "thought": True}, {"text": "answer"}]}}
        ]
    }
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(payload=payload), []))
    result = asyncio.run(GeminiClient(SettingsStub()).generate(_request()))
    assert result.text == "answer"


def test_gemini_client_blocked_prompt_gives_empty_text(monkeypatch):
    payload = {"promptFeedback": {"blockReason": "SAFETY"}}
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(payload=payload), []))
    result = asyncio.run(GeminiClient(SettingsStub()).generate(_request()))
    assert result.text == ""
    assert result.finish_reason == "SAFETY"


def test_gemini_client_missing_key_checked_before_network(monkeypatch):
    class NoKey(SettingsStub):
        api_key = None

    class Exploding:
        def __init__(self, *a, **kw):
            raise AssertionError("network must not be touched")

    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.setattr("httpx.AsyncClient", Exploding)
    with pytest.raises(ConfigurationError) as exc_info:
        asyncio.run(GeminiClient(NoKey()).generate(_request()))
    assert exc_info.value.message == MISSING_KEY_MESSAGE
    assert exc_info.value.kind == "configuration"


def test_gemini_client_reads_key_fixed_in_environment(monkeypatch):
    class NoKey(SettingsStub):
        api_key = None

    calls = []
    payload = {"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}
    monkeypatch.setenv("API_KEY", "env-key-abcdef")
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(payload=payload), calls))
    asyncio.run(GeminiClient(NoKey()).generate(_request()))
    assert calls[-1]["headers"]["x-goog-api-key"] == "env-key-abcdef"


def test_gemini_client_api_error_uses_upstream_message(monkeypatch):
    body = '{"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}}'
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(status_code=400, text=body), []))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(GeminiClient(SettingsStub()).generate(_request()))
    assert exc_info.value.code == "API_ERROR"
    assert exc_info.value.message == "API key not valid."
    assert exc_info.value.http_status == 400


def test_gemini_client_rate_limit(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(status_code=429, text="quota"), []))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(GeminiClient(SettingsStub()).generate(_request()))
    assert exc_info.value.code == "RATE_LIMIT"
    assert exc_info.value.message == "quota"


def test_gemini_client_network_error(monkeypatch):
    err = httpx.ConnectError("connection refused")
    monkeypatch.setattr("httpx.AsyncClient", make_client(err, []))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(GeminiClient(SettingsStub()).generate(_request()))
    assert exc_info.value.code == "NETWORK_ERROR"
    assert "connection refused" in exc_info.value.message


def test_gemini_client_invalid_json(monkeypatch):
    monkeypatch.setattr("httpx.AsyncClient", make_client(Resp(status_code=200, payload=None), []))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(GeminiClient(SettingsStub()).generate(_request()))
    assert exc_info.value.code == "BAD_RESPONSE"
