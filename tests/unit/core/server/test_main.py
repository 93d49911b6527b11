"""Tests for the server entry point and settings wiring."""

from __future__ import annotations

import pytest

from mindscreen.core.config.settings import get_settings
from mindscreen.core.llm.provider import DEFAULT_MODELS
from mindscreen.core.server import main


@pytest.mark.parametrize(
    ("host", "expected"),
    [("127.0.0.1", True), ("localhost", True), ("::1", True), ("0.0.0.0", False), ("example.org", False)],
)
def test_loopback_detection(host, expected):
    assert main._is_loopback_host(host) is expected


def test_refuses_public_bind(monkeypatch):
    monkeypatch.setenv("MINDSCREEN_HOST", "0.0.0.0")
    monkeypatch.setattr(main, "create_app", lambda: pytest.fail("server must not be built"))
    with pytest.raises(RuntimeError, match="non-loopback"):
        main.run()


def test_insecure_bind_override(monkeypatch):
    started = {}

    class _FakeServer:
        def run(self, **kwargs):
            started.update(kwargs)

    monkeypatch.setenv("MINDSCREEN_HOST", "0.0.0.0")
    monkeypatch.setenv("MINDSCREEN_ALLOW_INSECURE_BIND", "true")
    monkeypatch.setattr(main, "create_app", lambda: _FakeServer())
    main.run()
    assert started == {"transport": "streamable-http", "host": "0.0.0.0", "port": 8001}


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CLASSIFIER_VARIANT", "model")
    monkeypatch.setenv("GUIDANCE_TIMEOUT_S", "2.5")
    monkeypatch.setenv("CALLER_USER_ID", "9")
    settings = get_settings()
    assert settings.classifier_variant == "model"
    assert settings.guidance_timeout_s == 2.5
    assert settings.caller_user_id == 9
    assert settings.llm_provider == "mock"


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("LLM_PROVIDER")
    monkeypatch.delenv("CLASSIFIER_VARIANT")
    settings = get_settings()
    assert settings.llm_provider == "gemini"
    assert settings.classifier_variant == "rule"
    assert settings.degenerate_feature_value == 0.0


def test_settings_model_defaults_match_providers(monkeypatch):
    for name in ("GEMINI_MODEL", "ANTHROPIC_MODEL", "OPENAI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()
    assert settings.gemini_model == DEFAULT_MODELS["gemini"]
    assert settings.anthropic_model == DEFAULT_MODELS["anthropic"]
    assert settings.openai_model == DEFAULT_MODELS["openai"]
