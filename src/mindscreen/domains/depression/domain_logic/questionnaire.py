"""Questionnaire definition and the value types that flow through the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

# ---------------------------------------------------------------------------
# Questionnaire constants
# ---------------------------------------------------------------------------

# Fixed field order. Validated score vectors, feature vectors and model inputs
# all follow this order.
MENTAL_HEALTH_FIELDS: tuple[str, ...] = (
    "appetite",
    "interest",
    "fatigue",
    "worthlessness",
    "concentration",
    "agitation",
    "suicidalIdeation",
    "sleepDisturbance",
    "aggression",
    "panicAttacks",
    "hopelessness",
    "restlessness",
)

MIN_SCORE = 1
MAX_SCORE = 6

# Answer scale as shown to the user.
SCORE_MEANINGS: dict[int, str] = {
    1: "Never",
    2: "Always",
    3: "Often",
    4: "Rarely",
    5: "Sometimes",
    6: "Not at all",
}

# Answers that get called out individually in the guidance prompt.
CONCERNING_VALUES: dict[str, frozenset[int]] = {
    name: frozenset({2, 3}) for name in MENTAL_HEALTH_FIELDS
}
CONCERNING_VALUES["suicidalIdeation"] = frozenset({2, 3, 5})
CONCERNING_VALUES["panicAttacks"] = frozenset({2, 3, 5})

Language = Literal["en", "id"]
SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "id")


class SeverityState(IntEnum):
    """Ordinal depressive-symptom severity."""

    NONE = 0
    MILD = 1
    MODERATE = 2
    SEVERE = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


# ---------------------------------------------------------------------------
# Request value
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AssessmentInput:
    """A validated assessment request. Built only by the validator."""

    user_id: int
    scores: tuple[int, ...]  # MENTAL_HEALTH_FIELDS order
    language: Language = "en"
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def scores_by_field(self) -> dict[str, int]:
        return dict(zip(MENTAL_HEALTH_FIELDS, self.scores))


@dataclass(frozen=True)
class Classification:
    """Output of a severity classifier."""

    state: SeverityState
    classifier: str  # 'rule' | 'model'
    probabilities: tuple[float, ...] | None = None
