"""OpenAI chat completions, constrained to a JSON object reply."""

from __future__ import annotations

import time

from mindscreen.core.llm.provider import DEFAULT_MODELS, ProviderResponse, elapsed_ms


class OpenAIProvider:
    def __init__(self, api_key: str, model: str = DEFAULT_MODELS["openai"]) -> None:
        import openai

        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> ProviderResponse:
        started = time.monotonic()
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
            response_format={"type": "json_object"},
            max_tokens=max_tokens,
            temperature=temperature,
        )
        text = ""
        if completion.choices:
            text = completion.choices[0].message.content or ""
        usage = completion.usage
        return ProviderResponse(
            content=text,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            model=self.model,
            latency_ms=elapsed_ms(started),
        )
