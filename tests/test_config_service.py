from __future__ import annotations

import pytest

from querygenie_mcp.errors import ConfigurationError
from querygenie_mcp.services.config_service import ConfigService
from querygenie_mcp.services.core import CoreServices


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("QUERYGENIE_ROW_LIMIT", "QUERYGENIE_TIMEOUT_MS", "QUERYGENIE_HISTORY_WINDOW"):
        monkeypatch.delenv(name, raising=False)
    assert ConfigService.result_row_limit() == 1000
    assert ConfigService.statement_timeout_ms() == 30_000
    assert ConfigService.history_window() == 5


def test_int_overrides_and_floors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUERYGENIE_ROW_LIMIT", "250")
    monkeypatch.setenv("QUERYGENIE_TIMEOUT_MS", "5")
    monkeypatch.setenv("QUERYGENIE_EXPLORATION_ROW_LIMIT", "lots")
    assert ConfigService.result_row_limit() == 250
    assert ConfigService.statement_timeout_ms() == 100
    assert ConfigService.exploration_row_limit() == 100


def test_provider_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUERYGENIE_TEMPERATURE", "7")
    monkeypatch.setenv("QUERYGENIE_PROVIDER_TIMEOUT_SEC", "15")
    settings = ConfigService.provider_settings()
    assert settings.temperature == 2.0
    assert settings.timeout_sec == 15.0


def test_provider_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_AI_API_KEY", "g-key")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert ConfigService.provider_api_key("gemini") == "g-key"
    assert ConfigService.provider_api_key("gpt4") is None
    assert ConfigService.provider_api_key("unknown") is None


def test_model_name_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUERYGENIE_CLAUDE_MODEL", "claude-custom")
    monkeypatch.delenv("QUERYGENIE_GEMINI_MODEL", raising=False)
    monkeypatch.delenv("QUERYGENIE_GPT4_MODEL", raising=False)
    assert ConfigService.provider_model_names() == {"claude": "claude-custom"}


def test_core_services_require_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    CoreServices.reset_instance()
    monkeypatch.delenv("QUERYGENIE_ENCRYPTION_SECRET", raising=False)
    with pytest.raises(ConfigurationError):
        CoreServices.get_instance()


def test_core_services_singleton(monkeypatch: pytest.MonkeyPatch) -> None:
    CoreServices.reset_instance()
    monkeypatch.setenv("QUERYGENIE_ENCRYPTION_SECRET", "unit-test-secret")
    try:
        first = CoreServices.get_instance()
        assert CoreServices.get_instance() is first
        assert first.vault.decrypt(first.vault.encrypt("pw")) == "pw"
    finally:
        CoreServices.reset_instance()
