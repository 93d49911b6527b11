"""Request validation for assessments.

All errors in a request are collected and raised together so the caller sees
every bad field at once. Integer-valued strings and floats (``"4"``, ``4.0``)
are accepted because JSON clients often send form values as strings.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from mindscreen.domains.depression.domain_logic.errors import FieldError, ValidationError
from mindscreen.domains.depression.domain_logic.questionnaire import (
    MAX_SCORE,
    MENTAL_HEALTH_FIELDS,
    MIN_SCORE,
    SUPPORTED_LANGUAGES,
    AssessmentInput,
)

_MISSING = object()
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


def _as_int(value: Any) -> int | None:
    """Return ``value`` as an int if it represents one exactly, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if _INTEGER_TEXT.fullmatch(text):
            try:
                return int(text)
            except ValueError:
                # Past the interpreter's int string-length limit.
                return None
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _is_blank(value: Any) -> bool:
    return value is _MISSING or value is None or (isinstance(value, str) and not value.strip())


def _check_score(name: str, value: Any) -> tuple[int | None, FieldError | None]:
    if _is_blank(value):
        return None, FieldError(name, f"{name} score is required.")
    score = _as_int(value)
    if score is None or not MIN_SCORE <= score <= MAX_SCORE:
        return None, FieldError(
            name, f"{name} score must be an integer between {MIN_SCORE} and {MAX_SCORE}."
        )
    return score, None


def validate_scores(raw: Mapping[str, Any]) -> tuple[int, ...]:
    """Validate the 12 questionnaire answers.

    Returns:
        The scores as ints in ``MENTAL_HEALTH_FIELDS`` order.

    Raises:
        ValidationError: One FieldError per missing, non-integer or out-of-range field.
    """
    scores: list[int] = []
    errors: list[FieldError] = []
    for name in MENTAL_HEALTH_FIELDS:
        score, error = _check_score(name, raw.get(name, _MISSING))
        if error is not None:
            errors.append(error)
        else:
            scores.append(score)
    if errors:
        raise ValidationError(errors)
    return tuple(scores)


def _check_user_id(value: Any) -> tuple[int | None, FieldError | None]:
    if _is_blank(value):
        return None, FieldError("userId", "User ID is required.")
    user_id = _as_int(value)
    if user_id is None or user_id < 1:
        return None, FieldError("userId", "User ID must be a positive integer.")
    return user_id, None


def validate_user_id(value: Any) -> int:
    """Validate a user id parameter (history lookups)."""
    user_id, error = _check_user_id(value)
    if error is not None:
        raise ValidationError([error])
    return user_id


def _check_coordinate(name: str, value: Any, bound: float) -> tuple[float | None, FieldError | None]:
    if _is_blank(value):
        return None, None
    number = _as_float(value)
    if number is None or abs(number) > bound:
        return None, FieldError(name, f"{name} must be a number between {-bound:g} and {bound:g}.")
    return number, None


def validate_request(payload: Mapping[str, Any]) -> AssessmentInput:
    """Validate a full assessment request into an immutable AssessmentInput.

    Raises:
        ValidationError: With every field-level problem found.
    """
    errors: list[FieldError] = []

    user_id, error = _check_user_id(payload.get("userId", _MISSING))
    if error is not None:
        errors.append(error)

    try:
        scores = validate_scores(payload)
    except ValidationError as exc:
        errors.extend(exc.errors)
        scores = ()

    language = payload.get("language")
    if _is_blank(language):
        language = "en"
    elif not isinstance(language, str) or language.strip().lower() not in SUPPORTED_LANGUAGES:
        errors.append(FieldError("language", "language must be one of: en | id"))
    else:
        language = language.strip().lower()

    latitude, error = _check_coordinate("latitude", payload.get("latitude"), 90.0)
    if error is not None:
        errors.append(error)
    longitude, error = _check_coordinate("longitude", payload.get("longitude"), 180.0)
    if error is not None:
        errors.append(error)

    if errors:
        raise ValidationError(errors)

    return AssessmentInput(
        user_id=user_id,
        scores=scores,
        language=language,
        latitude=latitude,
        longitude=longitude,
    )
