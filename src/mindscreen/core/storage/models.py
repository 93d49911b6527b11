"""Data models for the assessment persistence layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Request field name -> health_tests column
SCORE_COLUMNS: dict[str, str] = {
    "appetite": "appetite",
    "interest": "interest",
    "fatigue": "fatigue",
    "worthlessness": "worthlessness",
    "concentration": "concentration",
    "agitation": "agitation",
    "suicidalIdeation": "suicidal_ideation",
    "sleepDisturbance": "sleep_disturbance",
    "aggression": "aggression",
    "panicAttacks": "panic_attacks",
    "hopelessness": "hopelessness",
    "restlessness": "restlessness",
}


@dataclass(frozen=True)
class AssessmentRecord:
    """One completed questionnaire with its classification and guidance.

    Records are written once and never updated. ``depression_state`` was
    produced by the classifier named in ``classifier`` from exactly these
    ``scores``; later classifier changes never touch stored rows.
    """

    user_id: int
    scores: dict[str, int]  # keyed by request field name, questionnaire order
    depression_state: int  # 0-3
    classifier: str  # 'rule' | 'model'
    suggestion: dict[str, str]  # {"en": ..., "id": ...}
    tips: dict[str, str]
    language: str = "en"
    latitude: float | None = None
    longitude: float | None = None
    id: int | None = None  # assigned by storage
    health_test_date: str = ""  # ISO 8601, assigned by storage when empty

    def to_response(self) -> dict[str, Any]:
        """Externally visible shape of a stored assessment."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "healthTestDate": self.health_test_date,
            **self.scores,
            "depressionState": self.depression_state,
            "language": self.language,
            "suggestion": dict(self.suggestion),
            "tips": dict(self.tips),
        }


@dataclass
class User:
    """Minimal local account row referenced by assessments."""

    id: int
    username: str
    created_at: str = ""
