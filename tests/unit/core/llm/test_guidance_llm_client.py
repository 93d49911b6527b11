"""Tests for GuidanceLLMClient: timeout, error wrapping, single attempt."""

from __future__ import annotations

import asyncio

import pytest

from mindscreen.core.llm.client import GenerationServiceError, GuidanceLLMClient
from mindscreen.core.llm.provider import create_provider
from mindscreen.core.llm.providers.mock import MockProvider
from mindscreen.core.llm.system_prompt import build_full_system_prompt


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class _FailingProvider:
    def __init__(self) -> None:
        self.calls = 0

    async def generate(self, system_message, user_message, max_tokens=1024, temperature=0.4):
        self.calls += 1
        raise ConnectionError("network down")


class _SlowProvider:
    async def generate(self, system_message, user_message, max_tokens=1024, temperature=0.4):
        await asyncio.sleep(5)


class TestComplete:
    def test_returns_provider_content(self):
        provider = MockProvider(response_content='{"ok": true}')
        client = GuidanceLLMClient(provider)
        assert _run(client.complete("hello")) == '{"ok": true}'
        assert provider.last_user_message == "hello"
        assert provider.last_system_message == build_full_system_prompt()

    def test_passes_generation_limits(self):
        seen = {}

        class _Recorder(MockProvider):
            async def generate(self, system_message, user_message, max_tokens=1024, temperature=0.4):
                seen["max_tokens"] = max_tokens
                seen["temperature"] = temperature
                return await super().generate(system_message, user_message, max_tokens, temperature)

        client = GuidanceLLMClient(_Recorder(), max_tokens=256, temperature=0.1)
        _run(client.complete("hi"))
        assert seen == {"max_tokens": 256, "temperature": 0.1}

    def test_provider_error_wrapped_without_retry(self):
        provider = _FailingProvider()
        client = GuidanceLLMClient(provider, provider_name="gemini")
        with pytest.raises(GenerationServiceError, match="gemini call failed: ConnectionError"):
            _run(client.complete("hello"))
        assert provider.calls == 1

    def test_timeout(self):
        client = GuidanceLLMClient(_SlowProvider(), provider_name="openai", timeout_s=0.05)
        with pytest.raises(GenerationServiceError, match="did not respond within"):
            _run(client.complete("hello"))


class TestCreateProvider:
    def test_mock(self):
        assert isinstance(create_provider("mock"), MockProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_provider("carrier-pigeon")

    def test_unknown_provider_lists_choices(self):
        with pytest.raises(ValueError, match="anthropic, gemini, mock, openai"):
            create_provider("carrier-pigeon")
