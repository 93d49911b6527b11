"""Guidance generation: bilingual suggestion and tips for a severity state.

The external text-generation service is asked for a JSON bundle. Its reply is
parsed at the boundary into ``GuidanceBundle | ParseFailure``; untyped JSON
never travels further. Any failure (call error, timeout, unparseable or
wrongly shaped reply) is answered from the static fallback table.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from mindscreen.core.llm.client import GenerationServiceError, GuidanceLLMClient
from mindscreen.domains.depression.domain_logic.fallback import fallback_texts
from mindscreen.domains.depression.domain_logic.questionnaire import (
    CONCERNING_VALUES,
    MENTAL_HEALTH_FIELDS,
    SCORE_MEANINGS,
    SeverityState,
)

logger = logging.getLogger(__name__)

GuidanceSource = Literal["llm", "fallback"]


@dataclass(frozen=True)
class LocalizedText:
    en: str
    id: str

    def as_dict(self) -> dict[str, str]:
        return {"en": self.en, "id": self.id}


@dataclass(frozen=True)
class GuidanceBundle:
    suggestion: LocalizedText
    tips: LocalizedText
    source: GuidanceSource = "llm"


@dataclass(frozen=True)
class ParseFailure:
    reason: str


# ---------------------------------------------------------------------------
# Boundary parsing
# ---------------------------------------------------------------------------

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def _localized(data: object, key: str) -> LocalizedText | ParseFailure:
    if not isinstance(data, dict) or not isinstance(data.get(key), dict):
        return ParseFailure(f"'{key}' must be an object with 'en' and 'id'")
    entry = data[key]
    texts: dict[str, str] = {}
    for locale in ("en", "id"):
        value = entry.get(locale)
        if not isinstance(value, str) or not value.strip():
            return ParseFailure(f"'{key}.{locale}' must be a non-empty string")
        texts[locale] = value.strip()
    return LocalizedText(**texts)


def parse_guidance(text: str) -> GuidanceBundle | ParseFailure:
    """Parse a service reply into a GuidanceBundle, or say why it can't be."""
    if not text or not text.strip():
        return ParseFailure("empty response")
    fenced = _CODE_FENCE.match(text)
    body = fenced.group(1) if fenced else text.strip()
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        return ParseFailure(f"not JSON: {exc.msg}")
    except RecursionError:
        return ParseFailure("JSON nested too deeply")

    suggestion = _localized(data, "suggestion")
    if isinstance(suggestion, ParseFailure):
        return suggestion
    tips = _localized(data, "tips")
    if isinstance(tips, ParseFailure):
        return tips
    return GuidanceBundle(suggestion=suggestion, tips=tips, source="llm")


def fallback_guidance(state: SeverityState, has_location: bool) -> GuidanceBundle:
    texts = fallback_texts(state, has_location)
    return GuidanceBundle(
        suggestion=LocalizedText(**texts["suggestion"]),
        tips=LocalizedText(**texts["tips"]),
        source="fallback",
    )


# ---------------------------------------------------------------------------
# Prompt construction
# ---------------------------------------------------------------------------

_STATE_INSTRUCTIONS: dict[SeverityState, str] = {
    SeverityState.NONE: (
        "A user's mental health assessment indicates no significant depressive symptoms.{details} "
        "Provide a brief, encouraging, and supportive suggestion (1-2 sentences) for maintaining good "
        "mental well-being. If there were specific minor concerns mentioned, subtly acknowledge them "
        "if appropriate while maintaining a positive tone."
    ),
    SeverityState.MILD: (
        "A user's mental health assessment indicates mild depressive symptoms.{details} "
        "Provide a brief, supportive suggestion (1-2 sentences) focusing on self-care, monitoring "
        "mood, and addressing any specifically mentioned concerns."
    ),
    SeverityState.MODERATE: (
        "A user's mental health assessment indicates moderate depressive symptoms.{details} "
        "Provide a brief, supportive suggestion (2-3 sentences) encouraging them to consider talking "
        "to a mental health professional, especially highlighting the importance of addressing the "
        "specifically mentioned concerns."
    ),
    SeverityState.SEVERE: (
        "A user's mental health assessment indicates severe depressive symptoms.{details} "
        "Provide a brief, supportive, and empathetic suggestion (2-3 sentences) strongly "
        "recommending they seek professional help immediately. Emphasize the seriousness of any "
        "specifically mentioned concerns like suicidal ideation."
    ),
}


def concerning_items(scores: Mapping[str, int]) -> list[str]:
    """``field (Meaning)`` for every answer in that field's concerning set."""
    items: list[str] = []
    for name in MENTAL_HEALTH_FIELDS:
        score = scores.get(name)
        if score in CONCERNING_VALUES[name]:
            items.append(f"{name} ({SCORE_MEANINGS.get(score, 'N/A')})")
    return items


def concerning_details(scores: Mapping[str, int]) -> str:
    items = concerning_items(scores)
    if not items:
        return ""
    return f" The assessment noted particular concerns with: {', '.join(items)}."


def location_instruction(latitude: float | None, longitude: float | None) -> str:
    if latitude is not None and longitude is not None:
        return (
            f"The user's current location is Latitude: {latitude}, Longitude: {longitude}. "
            "In the tips, recommend looking for psychologists, psychiatrists, hospitals or "
            "community health centers near these coordinates."
        )
    return (
        "The user's location is unknown. In the tips, gently reduce any stigma about seeking "
        "help, encourage them to reach out to a professional, and ask them to enable location "
        "access so nearby services can be suggested."
    )


def build_prompt(
    state: SeverityState,
    scores: Mapping[str, int],
    language: str = "en",
    latitude: float | None = None,
    longitude: float | None = None,
) -> str:
    """Build the user message sent to the text-generation service."""
    state = SeverityState(state)
    parts = [_STATE_INSTRUCTIONS[state].format(details=concerning_details(scores))]
    parts.append("Please ensure the suggestion is empathetic and actionable.")
    parts.append("Also give 2-3 short, practical tips the user can start today.")
    if state is SeverityState.SEVERE:
        parts.append(location_instruction(latitude, longitude))
    display = "Indonesian" if language == "id" else "English"
    parts.append(
        f"The user reads {display} first, but provide both English (\"en\") and Indonesian (\"id\") "
        'text. Respond only with JSON of the form {"suggestion": {"en": "...", "id": "..."}, '
        '"tips": {"en": "...", "id": "..."}}.'
    )
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class GuidanceGenerator:
    """Requests guidance from the LLM client and falls back to the static table."""

    def __init__(self, llm_client: GuidanceLLMClient) -> None:
        self._llm = llm_client

    @property
    def provider_name(self) -> str:
        return self._llm.provider_name

    async def generate(
        self,
        state: SeverityState,
        scores: Mapping[str, int],
        language: str = "en",
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> GuidanceBundle:
        has_location = latitude is not None and longitude is not None
        prompt = build_prompt(state, scores, language, latitude, longitude)
        try:
            reply = await self._llm.complete(prompt)
            parsed = parse_guidance(reply)
            if isinstance(parsed, ParseFailure):
                raise GenerationServiceError(f"unusable guidance reply: {parsed.reason}")
        except GenerationServiceError as exc:
            logger.warning("Guidance generation failed (%s); using fallback for state %d", exc, state)
            return fallback_guidance(state, has_location)

        logger.info("Guidance for state %d generated by %s", state, self._llm.provider_name)
        return parsed
