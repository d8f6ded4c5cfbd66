"""Configuration service for querygenie-mcp.

Centralizes environment variable handling. Values are read on each call so
tests can override them with ``monkeypatch.setenv``.
"""

from __future__ import annotations

import os

from querygenie_mcp.generation.providers import ProviderSettings

PROVIDER_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_AI_API_KEY"),
    "claude": ("ANTHROPIC_API_KEY",),
    "gpt4": ("OPENAI_API_KEY",),
}

PROVIDER_MODEL_ENV_VARS: dict[str, str] = {
    "gemini": "QUERYGENIE_GEMINI_MODEL",
    "claude": "QUERYGENIE_CLAUDE_MODEL",
    "gpt4": "QUERYGENIE_GPT4_MODEL",
}


def _int_env(name: str, default: int, minimum: int) -> int:
    val = os.getenv(name, str(default))
    try:
        n = int(val)
    except ValueError:
        n = default
    return max(minimum, n)


class ConfigService:
    """Static accessors for process configuration."""

    # ---- Execution budgets -------------------------------------------------
    @staticmethod
    def result_row_limit() -> int:
        """Default row limit for executed statements."""
        return _int_env("QUERYGENIE_ROW_LIMIT", 1000, 1)

    @staticmethod
    def exploration_row_limit() -> int:
        """Row limit for exploration queries."""
        return _int_env("QUERYGENIE_EXPLORATION_ROW_LIMIT", 100, 1)

    @staticmethod
    def statement_timeout_ms() -> int:
        return _int_env("QUERYGENIE_TIMEOUT_MS", 30_000, 100)

    @staticmethod
    def exploration_timeout_ms() -> int:
        return _int_env("QUERYGENIE_EXPLORATION_TIMEOUT_MS", 10_000, 100)

    @staticmethod
    def result_max_cell_chars() -> int:
        """Maximum characters per cell value in results."""
        return _int_env("QUERYGENIE_MAX_CELL_CHARS", 500, 10)

    # ---- Generation --------------------------------------------------------
    @staticmethod
    def history_window() -> int:
        """Number of recent turns threaded into each generation call."""
        return _int_env("QUERYGENIE_HISTORY_WINDOW", 5, 0)

    @staticmethod
    def provider_settings() -> ProviderSettings:
        val = os.getenv("QUERYGENIE_TEMPERATURE", "0.3")
        try:
            temperature = float(val)
        except ValueError:
            temperature = 0.3
        return ProviderSettings(
            temperature=min(max(temperature, 0.0), 2.0),
            timeout_sec=float(_int_env("QUERYGENIE_PROVIDER_TIMEOUT_SEC", 60, 1)),
        )

    @staticmethod
    def provider_model_names() -> dict[str, str]:
        """Model-name overrides per provider; unset providers use their defaults."""
        names: dict[str, str] = {}
        for choice, env_var in PROVIDER_MODEL_ENV_VARS.items():
            value = os.getenv(env_var)
            if value:
                names[choice] = value
        return names

    @staticmethod
    def provider_api_key(choice: str) -> str | None:
        """Operator-configured key for a provider, or ``None``.

        The value is returned to the caller and passed explicitly; the
        environment is never modified.
        """
        for env_var in PROVIDER_KEY_ENV_VARS.get(choice, ()):
            value = os.getenv(env_var)
            if value:
                return value
        return None
