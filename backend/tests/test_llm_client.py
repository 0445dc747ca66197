"""
Tests for the Gemini gateway.
"""
import json

import httpx
import pytest

from flow_reader.core.exceptions import (
    EmptyGenerationError,
    NotConfiguredError,
    ProviderError,
    TransportError,
)
from flow_reader.services.llm_client import LLMClient, to_gemini_contents
from flow_reader.services.prompt_composer import PromptTurn
from flow_reader.services.settings_store import ModelConfig

API_BASE = "https://gemini.test/v1beta"
CONFIG = ModelConfig(api_key="secret-key", model="gemini-2.5-flash")
TURNS = [
    PromptTurn("user", "first"),
    PromptTurn("assistant", "reply"),
    PromptTurn("user", "second"),
]


def make_client(handler) -> LLMClient:
    return LLMClient(api_base=API_BASE, timeout=5, transport=httpx.MockTransport(handler))


def success_body(*texts: str) -> dict:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": t} for t in texts]}}
        ]
    }


class TestSerialization:
    def test_roles_mapped(self):
        """Test that assistant turns are sent with the provider's 'model' role."""
        assert to_gemini_contents(TURNS) == [
            {"role": "user", "parts": [{"text": "first"}]},
            {"role": "model", "parts": [{"text": "reply"}]},
            {"role": "user", "parts": [{"text": "second"}]},
        ]


class TestGenerate:
    """Tests for generate()."""

    @pytest.mark.asyncio
    async def test_success_request_shape(self):
        """Test the request URL, credential header and body."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=success_body("Hello", ", world"))

        reply = await make_client(handler).generate(TURNS, CONFIG)

        assert reply == "Hello, world"
        assert seen["url"] == f"{API_BASE}/models/gemini-2.5-flash:generateContent"
        assert seen["key"] == "secret-key"
        body = seen["body"]
        assert body["contents"] == to_gemini_contents(TURNS)
        assert body["generationConfig"] == {
            "temperature": 0.7,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 2048,
        }
        assert {s["category"] for s in body["safetySettings"]} == {
            "HARM_CATEGORY_HARASSMENT",
            "HARM_CATEGORY_HATE_SPEECH",
            "HARM_CATEGORY_SEXUALLY_EXPLICIT",
            "HARM_CATEGORY_DANGEROUS_CONTENT",
        }
        assert all(s["threshold"] == "BLOCK_MEDIUM_AND_ABOVE" for s in body["safetySettings"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", [None, "", "   "])
    async def test_not_configured_makes_no_request(self, api_key):
        """Test that a missing key fails before any network call."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=success_body("unused"))

        with pytest.raises(NotConfiguredError):
            await make_client(handler).generate(TURNS, ModelConfig(api_key=api_key, model="m"))
        assert calls == []

    @pytest.mark.asyncio
    async def test_provider_error_carries_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}},
            )

        with pytest.raises(ProviderError) as exc_info:
            await make_client(handler).generate(TURNS, CONFIG)
        assert exc_info.value.message == "API key not valid."
        assert exc_info.value.provider_status == 400

    @pytest.mark.asyncio
    async def test_provider_error_without_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal")

        with pytest.raises(ProviderError) as exc_info:
            await make_client(handler).generate(TURNS, CONFIG)
        assert exc_info.value.message == "API 요청에 실패했습니다."

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"candidates": []},
            {"candidates": [{"finishReason": "SAFETY"}]},
            {"candidates": [{"content": {"parts": []}}]},
        ],
    )
    async def test_empty_generation(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(EmptyGenerationError):
            await make_client(handler).generate(TURNS, CONFIG)

    @pytest.mark.asyncio
    async def test_unparseable_success_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>not json</html>")

        with pytest.raises(ProviderError):
            await make_client(handler).generate(TURNS, CONFIG)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            [],
            {"candidates": [None]},
            {"candidates": ["text"]},
            {"candidates": {"content": {}}},
            {"candidates": [{"content": "blocked"}]},
            {"candidates": [{"content": {"parts": "text"}}]},
            {"candidates": [{"content": {"parts": [None]}}]},
            {"candidates": [{"content": {"parts": [{"text": None}]}}]},
            {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
        ],
    )
    async def test_malformed_success_body(self, body):
        """Test that a JSON body of the wrong shape is a provider error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(ProviderError) as exc_info:
            await make_client(handler).generate(TURNS, CONFIG)
        assert exc_info.value.message == "API 응답을 해석할 수 없습니다."

    @pytest.mark.asyncio
    async def test_non_text_parts_ignored(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"thought": True}, {"text": "answer"}]}}]},
            )

        assert await make_client(handler).generate(TURNS, CONFIG) == "answer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error_cls", [httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError]
    )
    async def test_transport_error(self, error_cls):
        def handler(request: httpx.Request) -> httpx.Response:
            raise error_cls("boom", request=request)

        with pytest.raises(TransportError):
            await make_client(handler).generate(TURNS, CONFIG)

    @pytest.mark.asyncio
    async def test_single_request_no_retry(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, json={"error": {"message": "overloaded"}})

        with pytest.raises(ProviderError):
            await make_client(handler).generate(TURNS, CONFIG)
        assert len(calls) == 1


class TestHealthCheck:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", [None, "", "  \t"])
    async def test_not_configured(self, api_key):
        """Test that a blank key is reported the same way generate() treats it."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        result = await make_client(handler).health_check(ModelConfig(api_key=api_key, model="m"))
        assert result["status"] == "not_configured"

    @pytest.mark.asyncio
    async def test_healthy(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/models/gemini-2.5-flash")
            return httpx.Response(200, json={"name": "models/gemini-2.5-flash"})

        result = await make_client(handler).health_check(CONFIG)
        assert result["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route", request=request)

        result = await make_client(handler).health_check(CONFIG)
        assert result["status"] == "unreachable"
