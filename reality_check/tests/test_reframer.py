import asyncio

import pytest

from reality_check.agents.reframer import Reframer
from reality_check.domain.exceptions import ConfigurationError, EmptyResponseError, UpstreamError
from reality_check.domain.models import GenerationResult


class SettingsStub:
    default_model = "reframe"
    temperature = 0.8
    top_p = 0.95
    top_k = 64
    max_output_tokens = 500


class FakeProvider:
    name = "fake"

    def __init__(self, text="Here's a balanced view...", error=None):
        self.text = text
        self.error = error
        self.requests = []

    async def generate(self, req):
        self.requests.append(req)
        if self.error is not None:
            raise self.error
        return GenerationResult(provider="fake", model=req.model, text=self.text)


def test_build_request_embeds_input_verbatim():
    reframer = Reframer(FakeProvider(), cfg=SettingsStub())
    raw = 'Headline: "AI {agents} replace 40% of jobs"'
    req = reframer.build_request(raw)
    assert f'"{raw}"' in req.prompt
    assert "AI Reality Check" in req.system_instruction
    assert req.model == "reframe"
    assert (req.temperature, req.top_p, req.top_k, req.max_output_tokens) == (0.8, 0.95, 64, 500)


def test_reframe_returns_text_unmodified():
    provider = FakeProvider(text="  keep *this* exactly \n")
    text = asyncio.run(Reframer(provider, cfg=SettingsStub()).reframe("I'm worried"))
    assert text == "  keep *this* exactly \n"
    assert len(provider.requests) == 1


def test_reframe_empty_response():
    provider = FakeProvider(text="   ")
    with pytest.raises(EmptyResponseError) as exc_info:
        asyncio.run(Reframer(provider, cfg=SettingsStub()).reframe("test"))
    assert exc_info.value.kind == "empty_response"
    assert exc_info.value.message == "Gemini API returned an empty response."


def test_reframe_passes_configuration_error_through():
    err = ConfigurationError(code="MISSING_API_KEY", message="API_KEY is not defined.")
    provider = FakeProvider(error=err)
    with pytest.raises(ConfigurationError) as exc_info:
        asyncio.run(Reframer(provider, cfg=SettingsStub()).reframe("test"))
    assert exc_info.value is err


def test_reframe_wraps_upstream_message():
    provider = FakeProvider(error=UpstreamError(code="API_ERROR", message="quota exceeded", http_status=429))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(Reframer(provider, cfg=SettingsStub()).reframe("test"))
    assert exc_info.value.message == "Failed to reframe anxiety. Please try again. Details: quota exceeded"
    assert exc_info.value.code == "API_ERROR"
    assert exc_info.value.http_status == 429


def test_reframe_wraps_unexpected_exception():
    provider = FakeProvider(error=RuntimeError("socket closed"))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(Reframer(provider, cfg=SettingsStub()).reframe("test"))
    assert exc_info.value.kind == "upstream"
    assert exc_info.value.message.endswith("Details: socket closed")
