"""
Tests for tickwise.llm.openai_client — chat completion delivery.

What we test:
  - Status code explanations.
  - Response parsing, malformed payloads and non-JSON bodies.
  - send() with a patched httpx.post, success and HTTP error.
  - deliver_prompt: unsupported provider, missing key, success.
"""

from __future__ import annotations

import httpx
import pytest

from tickwise.config import LLMConfig
from tickwise.llm.openai_client import (
    LLMResponseError,
    OpenAIClient,
    deliver_prompt,
    describe_status,
)

REPLY = {"choices": [{"message": {"role": "assistant", "content": "Looks constructive."}}]}


def _fake_post(status: int, payload=None, seen=None):
    def fake_post(url, **kwargs):
        if seen is not None:
            seen.update(kwargs)
        return httpx.Response(status, json=payload or {}, request=httpx.Request("POST", url))

    return fake_post


class TestDescribeStatus:
    @pytest.mark.parametrize(
        "code, prefix",
        [
            (400, "Bad request (400)"),
            (401, "Authentication failed (401)"),
            (403, "Access denied (403)"),
            (429, "Rate limited (429)"),
            (503, "Temporary server failure (503)"),
        ],
    )
    def test_known(self, code, prefix):
        assert describe_status(code).startswith(prefix)

    def test_other(self):
        assert describe_status(418, "teapot") == "Request failed (418): teapot"


class TestOpenAIClient:
    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            OpenAIClient(api_key="", model="gpt-4.1-nano")

    def test_parse_response(self):
        assert OpenAIClient("k", "m")._parse_response(REPLY) == "Looks constructive."

    @pytest.mark.parametrize(
        "payload",
        [{}, {"choices": []}, {"choices": [{"message": {}}]}, {"choices": [{"message": {"content": None}}]}],
    )
    def test_malformed(self, payload):
        with pytest.raises(LLMResponseError):
            OpenAIClient("k", "m")._parse_response(payload)

    def test_send(self, monkeypatch):
        seen: dict = {}
        monkeypatch.setattr(httpx, "post", _fake_post(200, REPLY, seen))
        assert OpenAIClient("secret", "gpt-4.1-nano").send("hi") == "Looks constructive."
        assert seen["headers"]["Authorization"] == "Bearer secret"
        assert seen["json"]["model"] == "gpt-4.1-nano"
        assert seen["json"]["messages"] == [{"role": "user", "content": "hi"}]

    def test_non_json_body(self, monkeypatch):
        def fake_post(url, **kwargs):
            return httpx.Response(200, text="<html>gateway</html>", request=httpx.Request("POST", url))

        monkeypatch.setattr(httpx, "post", fake_post)
        with pytest.raises(LLMResponseError, match="not JSON"):
            OpenAIClient("k", "m").send("hi")

    def test_send_error_logged_then_raised(self, monkeypatch, caplog):
        monkeypatch.setattr(httpx, "post", _fake_post(401))
        with pytest.raises(httpx.HTTPStatusError):
            OpenAIClient("bad", "m").send("hi")
        assert "Authentication failed (401)" in caplog.text


class TestDeliverPrompt:
    def test_unsupported_provider(self):
        with pytest.raises(NotImplementedError):
            deliver_prompt("hi", LLMConfig(provider="gemini", openai_api_key="k"))

    def test_missing_key(self, caplog):
        assert deliver_prompt("hi", LLMConfig()) is None
        assert "OPENAI_API_KEY" in caplog.text

    def test_success(self, monkeypatch):
        monkeypatch.setattr(httpx, "post", _fake_post(200, REPLY))
        assert deliver_prompt("hi", LLMConfig(openai_api_key="k")) == "Looks constructive."
