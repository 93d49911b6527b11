"""Guidance LLM client: a bounded, single-attempt bridge to the text-generation service."""

from __future__ import annotations

import asyncio
import logging

from mindscreen.core.llm.provider import LLMProvider, ProviderResponse
from mindscreen.core.llm.system_prompt import build_full_system_prompt

logger = logging.getLogger(__name__)


class GenerationServiceError(Exception):
    """Raised when the external text-generation call fails or times out."""


class GuidanceLLMClient:
    """Invokes the text-generation provider with a timeout and no retries.

    Any provider failure (transport error, SDK error, timeout) is re-raised as
    ``GenerationServiceError`` so callers can substitute their fallback output.
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        provider_name: str = "mock",
        timeout_s: float = 15.0,
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> None:
        self.provider = provider
        self.provider_name = provider_name
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, user_message: str) -> str:
        """Send one prompt and return the raw response text."""
        try:
            provider_response: ProviderResponse = await asyncio.wait_for(
                self.provider.generate(
                    system_message=build_full_system_prompt(),
                    user_message=user_message,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise GenerationServiceError(
                f"{self.provider_name} did not respond within {self.timeout_s:g}s"
            ) from exc
        except Exception as exc:
            raise GenerationServiceError(
                f"{self.provider_name} call failed: {type(exc).__name__}"
            ) from exc

        logger.info(
            "Guidance LLM call: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )
        return provider_response.content
