"""Mindscreen assessment MCP server: application factory.

This module provides:
- create_app() so tests can build fresh, fully wired server instances
- a lazily created module-level ``mcp`` for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from mindscreen.core.audit.logger import AuditLogger
from mindscreen.core.config.settings import Settings, get_settings
from mindscreen.core.identity.provider import IdentityProvider, StaticIdentityProvider
from mindscreen.core.llm.client import GuidanceLLMClient
from mindscreen.core.llm.provider import LLMProvider, create_provider
from mindscreen.core.storage.database import AssessmentDatabase
from mindscreen.core.storage.encryption import FieldEncryptor
from mindscreen.core.storage.repository import AssessmentRepository
from mindscreen.domains.depression.domain_logic.assembler import AssessmentService
from mindscreen.domains.depression.domain_logic.classifier import (
    SeverityClassifier,
    create_classifier,
)
from mindscreen.domains.depression.domain_logic.guidance import GuidanceGenerator
from mindscreen.domains.depression.domain_logic.model_handle import (
    ModelHandle,
    load_dense_model,
)
from mindscreen.domains.depression.domain_logic.normalizer import (
    FeatureNormalizer,
    load_feature_stats,
)
from mindscreen.domains.depression.tools.assessment_tools import register_assessment_tools
from mindscreen.domains.depression.tools.audit_tools import register_audit_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Mindscreen"
SERVER_VERSION = "0.1.0"


def _resolve_provider(settings: Settings) -> tuple[str, LLMProvider]:
    """Pick the configured guidance provider, or the mock when it has no key."""
    keys = {
        "gemini": (settings.gemini_api_key, settings.gemini_model),
        "anthropic": (settings.anthropic_api_key, settings.anthropic_model),
        "openai": (settings.openai_api_key, settings.openai_model),
    }
    if settings.llm_provider == "mock":
        provider_name, api_key, model = "mock", "", ""
    elif settings.llm_provider in keys:
        api_key, model = keys[settings.llm_provider]
        provider_name = settings.llm_provider if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; guidance will come from the mock provider",
            settings.llm_provider,
        )
    return provider_name, create_provider(provider_name=provider_name, api_key=api_key, model=model)


def _open_storage(settings: Settings) -> tuple[AssessmentDatabase, FieldEncryptor]:
    db_path = settings.db_path
    if settings.encryption_key:
        encryptor = FieldEncryptor(settings.encryption_key)
    else:
        logger.warning(
            "No ENCRYPTION_KEY configured: assessments are kept in memory with an "
            "ephemeral key and are lost on restart."
        )
        encryptor = FieldEncryptor.ephemeral()
        db_path = ":memory:"
    database = AssessmentDatabase(db_path, timeout_s=settings.db_timeout_s)
    database.initialize()
    logger.info(
        "Assessment store initialized: %s (schema v%d)",
        db_path,
        database.get_schema_version(),
    )
    return database, encryptor


def create_app(
    *,
    provider_override: LLMProvider | None = None,
    database_override: AssessmentDatabase | None = None,
    model_handle_override: ModelHandle | None = None,
    classifier_override: SeverityClassifier | None = None,
    identity_override: IdentityProvider | None = None,
) -> FastMCP:
    """Create and configure the Mindscreen MCP server.

    Wires the pipeline bottom-up: guidance provider and LLM client, feature
    normalizer, model handle and classifier, encrypted storage and audit log,
    then the assessment service and its tools. Overrides replace the matching
    component so tests can run fully offline.
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Depression screening server. Scores a 12-item questionnaire into a "
            "severity state (0 none, 1 mild, 2 moderate, 3 severe), returns bilingual "
            "(English / Indonesian) guidance and keeps a per-user history. "
            "Results are a screening aid, not a diagnosis."
        ),
    )

    # --- Guidance generation ---
    if provider_override is not None:
        provider_name, provider = "override", provider_override
    else:
        provider_name, provider = _resolve_provider(settings)
    llm_client = GuidanceLLMClient(
        provider,
        provider_name=provider_name,
        timeout_s=settings.guidance_timeout_s,
        max_tokens=settings.guidance_max_tokens,
        temperature=settings.guidance_temperature,
    )
    guidance = GuidanceGenerator(llm_client)

    # --- Classification ---
    model_handle = model_handle_override or ModelHandle(
        lambda: load_dense_model(settings.model_path or None)
    )
    if classifier_override is not None:
        classifier = classifier_override
    else:
        normalizer = None
        if settings.classifier_variant == "model":
            normalizer = FeatureNormalizer(
                load_feature_stats(settings.feature_stats_path or None),
                degenerate_value=settings.degenerate_feature_value,
            )
        classifier = create_classifier(
            settings.classifier_variant,
            normalizer=normalizer,
            model_handle=model_handle,
        )
    logger.info("Severity classifier: %s", classifier.name)

    # --- Storage and audit ---
    if database_override is not None:
        database = database_override
        encryptor = FieldEncryptor.ephemeral()
    else:
        database, encryptor = _open_storage(settings)
    repository = AssessmentRepository(database, encryptor)
    audit_logger = AuditLogger(database)

    identity = identity_override or StaticIdentityProvider(settings.caller_user_id)
    service = AssessmentService(classifier, guidance, repository, identity)

    # --- Tools ---
    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "classifier": classifier.name,
            "guidance_provider": provider_name,
            "assessments_stored": repository.count_assessments(),
        }
        if classifier.name == "model":
            status["model_loaded"] = model_handle.loaded
            status["model_failed"] = model_handle.failed
        return status

    register_assessment_tools(server, service, audit_logger)
    register_audit_tools(server, audit_logger)
    logger.info("Assessment and audit tools registered")

    return server


# Module-level instance for FastMCP discovery ("fastmcp run ...app.py:mcp").
# Lazy: only created on first attribute access, never when tests import create_app.
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
