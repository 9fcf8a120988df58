"""
Tests for model orchestration against a fake provider (httpx.MockTransport).
"""

import asyncio
import json
import time

import httpx
import pytest

from counselor.features.chat import web_search
from counselor.features.chat.prompts import SEARCH_FAILED_NOTE
from counselor.features.chat.service import call_model, get_model_response


def completion(content="Here is my advice.", model="gpt-4.1-mini", **message):
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content, **message}}],
    }


class FakeProvider:
    """Replays queued responses and records every request payload."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        status, body = response
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


def run(provider, coro_factory):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(provider)) as client:
            return await coro_factory(client)
    return asyncio.run(_run())


class TestGetModelResponse:
    def test_mock_without_usable_key(self):
        provider = FakeProvider((200, completion()))
        result = run(provider, lambda c: get_model_response("Tell me about a contest", client=c))
        assert result.success
        assert result.web_search_attempted
        assert provider.requests == []

    def test_primary_model_without_web_search(self, api_key):
        provider = FakeProvider((200, completion("Focus on depth.")))
        result = run(provider, lambda c: get_model_response("hi", web_search=False, client=c))

        assert result.success
        assert result.content == "Focus on depth."
        payload = provider.payloads[0]
        assert payload["model"] == "gpt-4.1-mini"
        assert "tools" not in payload
        assert payload["messages"][0]["role"] == "system"
        assert payload["messages"][1] == {"role": "user", "content": "hi"}

    def test_web_search_failure_falls_back_without_search(self, api_key, settings):
        provider = FakeProvider(
            (500, {"error": {"message": "boom"}}),
            (500, {"error": {"message": "boom"}}),
            (500, {"error": {"message": "boom"}}),
            (200, completion("Answer from memory.")),
        )
        result = run(provider, lambda c: get_model_response("best colleges?", client=c))

        assert result.success
        assert result.content == "Answer from memory."
        # three attempts (1 + LLM_MAX_RETRIES) for the search call, then the fallback
        assert len(provider.requests) == 4
        assert all("tools" in p for p in provider.payloads[:3])
        fallback = provider.payloads[3]
        assert "tools" not in fallback
        assert fallback["model"] == settings.PRIMARY_MODEL
        assert fallback["messages"][1]["content"].endswith(SEARCH_FAILED_NOTE)

    def test_failure_without_search_uses_fallback_model(self, api_key, settings):
        provider = FakeProvider(
            (400, {"error": {"message": "bad request"}}),
            (200, completion("Fallback answer.", model="gpt-3.5-turbo")),
        )
        result = run(provider, lambda c: get_model_response("hi", web_search=False, client=c))

        assert result.success
        assert [p["model"] for p in provider.payloads] == [settings.PRIMARY_MODEL, settings.FALLBACK_MODEL]

    def test_second_failure_is_returned(self, api_key):
        provider = FakeProvider((400, {"error": {"message": "bad request"}}))
        result = run(provider, lambda c: get_model_response("hi", web_search=False, client=c))

        assert not result.success
        assert result.error == "OpenAI API returned status 400: bad request"
        assert len(provider.requests) == 2

    def test_web_search_disabled_globally(self, api_key, settings, monkeypatch):
        monkeypatch.setattr(settings, "WEB_SEARCH_ENABLED", False)
        provider = FakeProvider((200, completion()))
        run(provider, lambda c: get_model_response("hi", web_search=True, client=c))
        assert "tools" not in provider.payloads[0]


class TestCallModel:
    def test_authentication_error_not_retried(self, api_key):
        provider = FakeProvider((401, {"error": {"message": "Incorrect API key provided"}}))
        result = run(provider, lambda c: call_model("gpt-4o", "hi", client=c))

        assert not result.success
        assert result.error.startswith("Authentication error: Incorrect API key provided")
        assert len(provider.requests) == 1

    def test_non_json_error_body_is_truncated(self, api_key):
        provider = FakeProvider((403, "x" * 300))
        result = run(provider, lambda c: call_model("gpt-4o", "hi", client=c))
        assert result.error == f"OpenAI API returned status 403: {'x' * 200}..."

    def test_rate_limit_is_retried(self, api_key):
        provider = FakeProvider((429, {"error": {"message": "slow down"}}), (200, completion("ok")))
        result = run(provider, lambda c: call_model("gpt-4o", "hi", client=c))

        assert result.success
        assert result.content == "ok"
        assert len(provider.requests) == 2

    def test_timeouts_exhaust_retries(self, api_key):
        provider = FakeProvider(httpx.ReadTimeout("timed out"))
        result = run(provider, lambda c: call_model("gpt-4o", "hi", client=c))

        assert not result.success
        assert result.is_timeout
        assert result.error.startswith("Request timed out after 3 attempts")
        assert len(provider.requests) == 3

    def test_empty_choices(self, api_key):
        provider = FakeProvider((200, {"choices": []}))
        result = run(provider, lambda c: call_model("gpt-4o", "hi", client=c))
        assert result.error == "The API response format was invalid or empty."

    def test_empty_content(self, api_key):
        provider = FakeProvider((200, completion("   ")))
        result = run(provider, lambda c: call_model("gpt-4o", "hi", client=c))
        assert result.error == "The API returned an empty message with no content."

    def test_tool_call_round_trip(self, api_key):
        tool_call = {
            "id": "call_1",
            "type": "function",
            "function": {"name": "web_search", "arguments": json.dumps({"query": "top university rankings"})},
        }
        provider = FakeProvider(
            (200, completion(None, tool_calls=[tool_call])),
            (200, completion("MIT and Stanford lead the rankings.")),
        )
        result = run(provider, lambda c: call_model("gpt-4o", "rankings?", enable_web_search=True, client=c))

        assert result.success
        assert result.content == "MIT and Stanford lead the rankings."
        assert result.tool_calls_made == 1
        assert len(result.web_search_results) == 3

        first, follow_up = provider.payloads
        assert first["tool_choice"] == "auto"
        assert first["tools"][0]["function"]["name"] == "web_search"
        assert "tools" not in follow_up
        roles = [m["role"] for m in follow_up["messages"]]
        assert roles == ["system", "user", "assistant", "tool"]
        assert follow_up["messages"][3]["tool_call_id"] == "call_1"

    def test_openrouter_headers(self, settings, monkeypatch):
        monkeypatch.setattr(settings, "LLM_PROVIDER", "openrouter")
        monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "sk-or-0123456789abcdef")
        provider = FakeProvider((200, completion()))
        run(provider, lambda c: call_model("deepseek/deepseek-chat", "hi", client=c))

        request = provider.requests[0]
        assert str(request.url) == settings.OPENROUTER_API_URL
        assert request.headers["OpenRouter-Completions-Version"] == "2023-12-01"
        assert request.headers["HTTP-Referer"] == settings.OPENROUTER_REFERER
        assert request.headers["Authorization"] == "Bearer sk-or-0123456789abcdef"

    def test_slow_search_does_not_block_the_timeout(self, api_key, monkeypatch):
        class SlowTavily:
            def search(self, **kwargs):
                time.sleep(0.5)
                return {"results": []}

        monkeypatch.setattr(web_search, "_client", SlowTavily())
        tool_call = {
            "id": "call_1",
            "type": "function",
            "function": {"name": "web_search", "arguments": json.dumps({"query": "robotics competitions"})},
        }
        provider = FakeProvider(
            (200, completion(None, tool_calls=[tool_call])),
            (200, completion("Try FIRST Robotics.")),
        )

        with pytest.raises(asyncio.TimeoutError):
            run(provider, lambda c: asyncio.wait_for(get_model_response("competitions?", client=c), timeout=0.1))
        assert len(provider.requests) == 1
