"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings

from mindscreen.core.llm.provider import DEFAULT_MODELS


class Settings(BaseSettings):
    """Mindscreen assessment server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: the caller identity check relies on a trusted transport
    # unless CALLER_USER_ID is set.
    mindscreen_host: str = "127.0.0.1"
    mindscreen_port: int = 8001
    mindscreen_log_level: str = "info"
    mindscreen_allow_insecure_bind: bool = False

    # Guidance text generation
    llm_provider: Literal["gemini", "anthropic", "openai", "mock"] = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_MODELS["gemini"]
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_MODELS["anthropic"]
    openai_api_key: str = ""
    openai_model: str = DEFAULT_MODELS["openai"]
    guidance_timeout_s: float = 15.0
    guidance_max_tokens: int = 1024
    guidance_temperature: float = 0.4

    # Classification
    classifier_variant: Literal["rule", "model"] = "rule"
    # Empty paths resolve to the artifacts shipped with the package.
    feature_stats_path: str = ""
    model_path: str = ""
    degenerate_feature_value: float = 0.0

    # Storage (assessment records)
    db_path: str = "~/.mindscreen/assessments.db"
    db_timeout_s: float = 5.0
    encryption_key: str = ""

    # Identity: numeric id of the authenticated caller, when the transport provides one.
    caller_user_id: int | None = None


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
