"""Claude through the Anthropic messages API."""

from __future__ import annotations

import time

from mindscreen.core.llm.provider import DEFAULT_MODELS, ProviderResponse, elapsed_ms


class AnthropicProvider:
    def __init__(self, api_key: str, model: str = DEFAULT_MODELS["anthropic"]) -> None:
        import anthropic

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> ProviderResponse:
        started = time.monotonic()
        message = await self.client.messages.create(
            model=self.model,
            system=system_message,
            messages=[{"role": "user", "content": user_message}],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        text = "".join(block.text for block in message.content if getattr(block, "type", "") == "text")
        return ProviderResponse(
            content=text,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            model=self.model,
            latency_ms=elapsed_ms(started),
        )
