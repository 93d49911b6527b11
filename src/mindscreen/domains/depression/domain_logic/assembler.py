"""Assessment pipeline: validate -> classify -> guidance -> persist -> respond.

Stages run strictly in order and the first unrecoverable error ends the
request (validation, identity, model load, persistence). Guidance failures are
not in that list: the generator substitutes its fallback and the pipeline
continues.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mindscreen.core.identity.provider import IdentityProvider
from mindscreen.core.storage.encryption import EncryptionError
from mindscreen.core.storage.models import AssessmentRecord
from mindscreen.core.storage.repository import (
    AssessmentRepository,
    RepositoryError,
    UnknownUserError,
)
from mindscreen.domains.depression.domain_logic.classifier import SeverityClassifier
from mindscreen.domains.depression.domain_logic.errors import (
    AuthorizationError,
    PersistenceError,
    UserNotFoundError,
)
from mindscreen.domains.depression.domain_logic.guidance import GuidanceBundle, GuidanceGenerator
from mindscreen.domains.depression.domain_logic.questionnaire import (
    AssessmentInput,
    Classification,
)
from mindscreen.domains.depression.domain_logic.validator import (
    validate_request,
    validate_user_id,
)

logger = logging.getLogger(__name__)

PREDICT_MESSAGE = "Depression state predicted and recorded successfully."
HISTORY_MESSAGE = "Test history retrieved successfully."
EMPTY_HISTORY_MESSAGE = "No test history found for this user."
LATEST_MESSAGE = "Latest test retrieved successfully."


@dataclass(frozen=True)
class AssessmentOutcome:
    """Everything the pipeline produced, for the caller and the audit trail."""

    record: AssessmentRecord
    classification: Classification
    guidance: GuidanceBundle

    def to_response(self) -> dict[str, Any]:
        return {"message": PREDICT_MESSAGE, "data": self.record.to_response()}


def assemble_record(
    assessment: AssessmentInput,
    classification: Classification,
    guidance: GuidanceBundle,
) -> AssessmentRecord:
    """Combine the pipeline outputs into an unsaved AssessmentRecord."""
    return AssessmentRecord(
        user_id=assessment.user_id,
        scores=assessment.scores_by_field(),
        depression_state=int(classification.state),
        classifier=classification.classifier,
        language=assessment.language,
        latitude=assessment.latitude,
        longitude=assessment.longitude,
        suggestion=guidance.suggestion.as_dict(),
        tips=guidance.tips.as_dict(),
    )


class AssessmentService:
    """Runs one assessment request end to end and serves stored results.

    Usage::

        service = AssessmentService(classifier, guidance, repository)
        outcome = await service.assess({"userId": 1, "appetite": 4, ...})
        outcome.to_response()
    """

    def __init__(
        self,
        classifier: SeverityClassifier,
        guidance: GuidanceGenerator,
        repository: AssessmentRepository,
        identity: IdentityProvider | None = None,
    ) -> None:
        self.classifier = classifier
        self.guidance = guidance
        self.repository = repository
        self.identity = identity

    def _authorize(self, user_id: int) -> None:
        if self.identity is None:
            return
        caller = self.identity.current_user_id()
        if caller is not None and caller != user_id:
            logger.warning("Caller %d attempted to act for user %d", caller, user_id)
            raise AuthorizationError()

    async def assess(self, payload: Mapping[str, Any]) -> AssessmentOutcome:
        """Run the full pipeline for one request.

        Raises:
            ValidationError: Bad or missing input.
            AuthorizationError: Caller identity does not match ``userId``.
            ModelUnavailableError: The model-based classifier cannot load.
            PersistenceError: The record could not be stored.
        """
        assessment = validate_request(payload)
        self._authorize(assessment.user_id)

        classification = self.classifier.classify(assessment.scores)
        logger.info(
            "Assessment for user %d classified as %s by %s classifier",
            assessment.user_id,
            classification.state.label,
            classification.classifier,
        )

        guidance = await self.guidance.generate(
            classification.state,
            assessment.scores_by_field(),
            assessment.language,
            assessment.latitude,
            assessment.longitude,
        )
        logger.info("Guidance source for user %d: %s", assessment.user_id, guidance.source)

        record = assemble_record(assessment, classification, guidance)
        try:
            stored = self.repository.create(record)
        except UnknownUserError as exc:
            raise PersistenceError("Invalid userId. User does not exist.") from exc
        except RepositoryError as exc:
            logger.error("Failed to save assessment for user %d: %s", assessment.user_id, exc)
            raise PersistenceError("Failed to record health test.") from exc

        return AssessmentOutcome(record=stored, classification=classification, guidance=guidance)

    def _require_user(self, raw_user_id: Any) -> int:
        user_id = validate_user_id(raw_user_id)
        self._authorize(user_id)
        if not self.repository.user_exists(user_id):
            raise UserNotFoundError()
        return user_id

    def history(self, raw_user_id: Any) -> dict[str, Any]:
        """All stored assessments for a user, newest first."""
        user_id = self._require_user(raw_user_id)
        try:
            records = self.repository.find_history(user_id)
        except (RepositoryError, EncryptionError) as exc:
            raise PersistenceError("Failed to retrieve test history.") from exc
        if not records:
            return {"message": EMPTY_HISTORY_MESSAGE, "data": []}
        return {"message": HISTORY_MESSAGE, "data": [r.to_response() for r in records]}

    def latest(self, raw_user_id: Any) -> dict[str, Any]:
        """The most recent stored assessment for a user (``data`` is None if none)."""
        user_id = self._require_user(raw_user_id)
        try:
            record = self.repository.find_latest(user_id)
        except (RepositoryError, EncryptionError) as exc:
            raise PersistenceError("Failed to retrieve test history.") from exc
        if record is None:
            return {"message": EMPTY_HISTORY_MESSAGE, "data": None}
        return {"message": LATEST_MESSAGE, "data": record.to_response()}
