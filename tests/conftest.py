"""Shared test fixtures for the assessment server tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("CLASSIFIER_VARIANT", "rule")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.delenv("CALLER_USER_ID", raising=False)
    monkeypatch.delenv("MODEL_PATH", raising=False)
    monkeypatch.delenv("FEATURE_STATS_PATH", raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from mindscreen.domains.depression.domain_logic.questionnaire import (  # noqa: E402
    MENTAL_HEALTH_FIELDS,
)


def make_scores(default: int = 4, **overrides: int) -> dict[str, int]:
    """All twelve answers set to ``default``, with per-field overrides."""
    scores = {name: default for name in MENTAL_HEALTH_FIELDS}
    scores.update(overrides)
    return scores


def make_payload(user_id=1, default: int = 4, **overrides) -> dict:
    """A complete predict request body."""
    payload = {"userId": user_id, **make_scores(default)}
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def assessment_db():
    """Create an in-memory AssessmentDatabase for testing."""
    from mindscreen.core.storage.database import AssessmentDatabase

    db = AssessmentDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from mindscreen.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def assessment_repository(assessment_db, field_encryptor):
    """Create an AssessmentRepository backed by in-memory SQLite."""
    from mindscreen.core.storage.repository import AssessmentRepository

    return AssessmentRepository(assessment_db, field_encryptor)


@pytest.fixture
def audit_logger(assessment_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from mindscreen.core.audit.logger import AuditLogger

    return AuditLogger(assessment_db)
