"""Text-generation providers behind one async ``generate`` call.

Each vendor SDK is imported only when its provider is built, so a deployment
needs just the SDK it actually uses.
"""

from __future__ import annotations

import importlib
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class ProviderResponse:
    """Reply text plus the accounting the client logs."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@runtime_checkable
class LLMProvider(Protocol):
    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> ProviderResponse: ...


def elapsed_ms(started: float) -> float:
    """Milliseconds since a ``time.monotonic()`` reading."""
    return (time.monotonic() - started) * 1000


DEFAULT_MODELS: dict[str, str] = {
    "gemini": "gemini-1.5-flash",
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
}

# name -> (module, class)
_PROVIDERS: dict[str, tuple[str, str]] = {
    "gemini": ("mindscreen.core.llm.providers.gemini", "GeminiProvider"),
    "anthropic": ("mindscreen.core.llm.providers.anthropic", "AnthropicProvider"),
    "openai": ("mindscreen.core.llm.providers.openai", "OpenAIProvider"),
}


def create_provider(provider_name: str, api_key: str = "", model: str = "") -> LLMProvider:
    """Build the provider called ``provider_name``.

    ``"mock"`` needs no key and never leaves the process. ``model`` overrides
    the provider's default model.

    Raises:
        ValueError: ``provider_name`` is not a known provider.
    """
    if provider_name == "mock":
        from mindscreen.core.llm.providers.mock import MockProvider

        return MockProvider()
    try:
        module_name, class_name = _PROVIDERS[provider_name]
    except KeyError:
        known = ", ".join(sorted([*_PROVIDERS, "mock"]))
        raise ValueError(f"Unknown LLM provider: {provider_name} (expected one of {known})") from None
    provider_cls = getattr(importlib.import_module(module_name), class_name)
    return provider_cls(api_key=api_key, model=model or DEFAULT_MODELS[provider_name])
