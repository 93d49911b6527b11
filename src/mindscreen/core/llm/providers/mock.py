"""Offline provider: answers every prompt with the same guidance JSON."""

from __future__ import annotations

import json

from mindscreen.core.llm.provider import ProviderResponse

_CANNED_GUIDANCE = json.dumps({
    "suggestion": {
        "en": "Thank you for completing the check-in. Keep paying attention to how you feel.",
        "id": "Terima kasih sudah mengisi tes ini. Tetap perhatikan bagaimana perasaanmu.",
    },
    "tips": {
        "en": "Keep a regular sleep schedule and talk with someone you trust this week.",
        "id": "Jaga jadwal tidur yang teratur dan berbicaralah dengan orang yang kamu percaya minggu ini.",
    },
})


class MockProvider:
    """Returns ``response_content`` (valid bilingual guidance by default).

    The last prompt pair and the number of calls are kept for assertions.
    """

    def __init__(self, response_content: str | None = None) -> None:
        self.response_content = _CANNED_GUIDANCE if response_content is None else response_content
        self.last_system_message = ""
        self.last_user_message = ""
        self.call_count = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> ProviderResponse:
        self.call_count += 1
        self.last_system_message, self.last_user_message = system_message, user_message
        return ProviderResponse(
            content=self.response_content,
            input_tokens=len(f"{system_message} {user_message}".split()),
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
        )
