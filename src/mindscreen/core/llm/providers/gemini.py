"""Google Gemini through the google-generativeai SDK."""

from __future__ import annotations

import time

from mindscreen.core.llm.provider import DEFAULT_MODELS, ProviderResponse, elapsed_ms


class GeminiProvider:
    def __init__(self, api_key: str, model: str = DEFAULT_MODELS["gemini"]) -> None:
        import google.generativeai as genai

        genai.configure(api_key=api_key)
        self._genai = genai
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> ProviderResponse:
        # The system instruction is bound per model object.
        model = self._genai.GenerativeModel(self.model, system_instruction=system_message)
        started = time.monotonic()
        reply = await model.generate_content_async(
            user_message,
            generation_config={
                "max_output_tokens": max_tokens,
                "temperature": temperature,
                "response_mime_type": "application/json",
            },
        )
        usage = getattr(reply, "usage_metadata", None)
        return ProviderResponse(
            content=reply.text or "",
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            model=self.model,
            latency_ms=elapsed_ms(started),
        )
