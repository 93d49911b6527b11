"""Error taxonomy for the assessment pipeline.

Each error carries the status code the tool layer reports. Only
``GenerationServiceError`` is never surfaced: the guidance generator recovers
from it locally with the fallback table.
"""

from __future__ import annotations

from dataclasses import dataclass

from mindscreen.core.llm.client import GenerationServiceError

__all__ = [
    "AssessmentError",
    "AuthorizationError",
    "FieldError",
    "GenerationServiceError",
    "ModelUnavailableError",
    "PersistenceError",
    "UserNotFoundError",
    "ValidationError",
]


class AssessmentError(Exception):
    """Base class for errors that end an assessment request."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {"status_code": self.status_code, "message": self.message}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationError(AssessmentError):
    """Missing or malformed request input. Never retried."""

    status_code = 400

    def __init__(self, errors: list[FieldError]) -> None:
        fields = ", ".join(e.field for e in errors)
        super().__init__(f"Invalid input: {fields}")
        self.errors = list(errors)

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def to_payload(self) -> dict:
        return {
            "status_code": self.status_code,
            "message": self.message,
            "errors": [{"field": e.field, "message": e.message} for e in self.errors],
        }


class AuthorizationError(AssessmentError):
    """The caller may not act for the requested user."""

    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class UserNotFoundError(AssessmentError):
    status_code = 404

    def __init__(self, message: str = "User not found.") -> None:
        super().__init__(message)


class ModelUnavailableError(AssessmentError):
    """The model-based classifier could not be initialised."""

    status_code = 500


class PersistenceError(AssessmentError):
    """Storing or reading an assessment failed. Not retried here."""

    status_code = 500
