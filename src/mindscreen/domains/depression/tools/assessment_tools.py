"""MCP tools for depression screening assessments.

``predict_depression`` runs the full pipeline and stores the result;
``assessment_history`` and ``latest_assessment`` read stored results back.
All tools answer with a JSON string carrying an HTTP-style ``status_code``.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from mindscreen.core.audit.logger import AuditLogger
    from mindscreen.domains.depression.domain_logic.assembler import AssessmentService

from mindscreen.core.storage.repository import RepositoryError
from mindscreen.domains.depression.domain_logic.errors import AssessmentError

logger = logging.getLogger(__name__)

Score = int | float | str | None


def _error_response(exc: AssessmentError) -> str:
    return json.dumps(exc.to_payload())


def register_assessment_tools(
    mcp: FastMCP,
    service: AssessmentService,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register assessment tools on the MCP server."""

    llm_provider = service.guidance.provider_name

    def _audit(tool_name: str, tool_input: Any, start_time: float, **fields: Any) -> None:
        if audit_logger is None:
            return
        audit_logger.log_tool_call(
            tool_name=tool_name,
            tool_input=tool_input,
            duration_ms=(time.monotonic() - start_time) * 1000,
            **fields,
        )

    @mcp.tool
    async def predict_depression(
        ctx: Context,
        user_id: int | str | None = None,
        appetite: Score = None,
        interest: Score = None,
        fatigue: Score = None,
        worthlessness: Score = None,
        concentration: Score = None,
        agitation: Score = None,
        suicidal_ideation: Score = None,
        sleep_disturbance: Score = None,
        aggression: Score = None,
        panic_attacks: Score = None,
        hopelessness: Score = None,
        restlessness: Score = None,
        language: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> str:
        """Screen for depressive-symptom severity from the 12-item questionnaire.

        Each answer uses the scale 1=Never, 2=Always, 3=Often, 4=Rarely,
        5=Sometimes, 6=Not at all. Returns the severity state (0 none,
        1 mild, 2 moderate, 3 severe) with bilingual suggestion and tips,
        and stores the result in the user's history.

        Args:
            user_id: Id of the user taking the test.
            appetite: Answer 1-6.
            interest: Answer 1-6.
            fatigue: Answer 1-6.
            worthlessness: Answer 1-6.
            concentration: Answer 1-6.
            agitation: Answer 1-6.
            suicidal_ideation: Answer 1-6.
            sleep_disturbance: Answer 1-6.
            aggression: Answer 1-6.
            panic_attacks: Answer 1-6.
            hopelessness: Answer 1-6.
            restlessness: Answer 1-6.
            language: Preferred display language, 'en' (default) or 'id'.
            latitude: Optional latitude, used to suggest help nearby.
            longitude: Optional longitude, used to suggest help nearby.
        """
        start_time = time.monotonic()
        payload: dict[str, Any] = {
            "userId": user_id,
            "appetite": appetite,
            "interest": interest,
            "fatigue": fatigue,
            "worthlessness": worthlessness,
            "concentration": concentration,
            "agitation": agitation,
            "suicidalIdeation": suicidal_ideation,
            "sleepDisturbance": sleep_disturbance,
            "aggression": aggression,
            "panicAttacks": panic_attacks,
            "hopelessness": hopelessness,
            "restlessness": restlessness,
            "language": language,
            "latitude": latitude,
            "longitude": longitude,
        }
        # Only the user id and the fact that a location was shared go into the hash.
        audit_input = {"userId": user_id, "has_location": latitude is not None}

        try:
            outcome = await service.assess(payload)
        except AssessmentError as exc:
            logger.info("predict_depression rejected (%d): %s", exc.status_code, exc.message)
            _audit(
                "predict_depression",
                audit_input,
                start_time,
                llm_provider=llm_provider,
                status="failure",
                error_type=type(exc).__name__,
            )
            return _error_response(exc)
        except Exception as exc:
            _audit(
                "predict_depression",
                audit_input,
                start_time,
                llm_provider=llm_provider,
                status="failure",
                error_type=type(exc).__name__,
            )
            raise

        _audit(
            "predict_depression",
            audit_input,
            start_time,
            llm_provider=llm_provider,
            llm_disclosed=(outcome.guidance.source == "llm" and llm_provider != "mock"),
            classifier=outcome.classification.classifier,
            guidance_source=outcome.guidance.source,
            record_id=outcome.record.id,
            metadata={"depression_state": outcome.record.depression_state},
        )
        return json.dumps({"status_code": 201, **outcome.to_response()}, ensure_ascii=False)

    @mcp.tool
    async def assessment_history(ctx: Context, user_id: int | str | None = None) -> str:
        """List all stored screening results for a user, newest first.

        Args:
            user_id: Id of the user whose history to return.
        """
        start_time = time.monotonic()
        try:
            result = service.history(user_id)
        except AssessmentError as exc:
            _audit("assessment_history", {"userId": user_id}, start_time,
                   status="failure", error_type=type(exc).__name__)
            return _error_response(exc)
        _audit("assessment_history", {"userId": user_id}, start_time,
               metadata={"records": len(result["data"])})
        return json.dumps({"status_code": 200, **result}, ensure_ascii=False)

    @mcp.tool
    async def latest_assessment(ctx: Context, user_id: int | str | None = None) -> str:
        """Return the most recent screening result for a user.

        Args:
            user_id: Id of the user.
        """
        start_time = time.monotonic()
        try:
            result = service.latest(user_id)
        except AssessmentError as exc:
            _audit("latest_assessment", {"userId": user_id}, start_time,
                   status="failure", error_type=type(exc).__name__)
            return _error_response(exc)
        _audit("latest_assessment", {"userId": user_id}, start_time)
        return json.dumps({"status_code": 200, **result}, ensure_ascii=False)

    @mcp.tool
    async def register_user(ctx: Context, username: str) -> str:
        """Create a local user so assessments can be recorded for it.

        Args:
            username: Unique display name.
        """
        username = username.strip()
        if not username:
            return json.dumps({
                "status_code": 400,
                "message": "Invalid input: username",
                "errors": [{"field": "username", "message": "Username is required."}],
            })
        try:
            user_id = service.repository.create_user(username)
        except RepositoryError as exc:
            return json.dumps({"status_code": 409, "message": str(exc)})
        return json.dumps({
            "status_code": 201,
            "message": "User registered.",
            "data": {"id": user_id, "username": username},
        })
