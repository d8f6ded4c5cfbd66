"""Process-wide core services.

Provides a singleton holding the credential vault and the stateless core
components built on it. The vault key is derived once, at first access,
and only read afterwards.
"""

from __future__ import annotations

import threading
from typing import ClassVar

from fastmcp.utilities.logging import get_logger

from querygenie_mcp.execute.runner import ExecutionLimits, QueryExecutor
from querygenie_mcp.generation.engine import GenerationEngine
from querygenie_mcp.generation.providers import ProviderClient
from querygenie_mcp.schema_tools.introspection import SchemaIntrospector
from querygenie_mcp.security.vault import CredentialVault
from querygenie_mcp.services.config_service import ConfigService
from querygenie_mcp.sqlglot_tools import SqlglotService


class CoreServices:
    """Singleton container for the vault, executor, introspector and generator."""

    _instance: ClassVar[CoreServices | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, vault: CredentialVault, *, glot: SqlglotService | None = None) -> None:
        self._logger = get_logger(__name__)
        self.vault = vault
        self.glot = glot or SqlglotService()
        self.executor = QueryExecutor(
            vault,
            glot=self.glot,
            limits=ExecutionLimits(
                row_limit=ConfigService.result_row_limit(),
                timeout_ms=ConfigService.statement_timeout_ms(),
                max_cell_chars=ConfigService.result_max_cell_chars(),
            ),
        )
        self.introspector = SchemaIntrospector(
            vault, timeout_ms=ConfigService.statement_timeout_ms()
        )
        self.generator = GenerationEngine(
            ProviderClient(
                ConfigService.provider_settings(),
                model_names=ConfigService.provider_model_names(),
            ),
            self.introspector,
            history_window=ConfigService.history_window(),
        )
        self._logger.info("Core services ready")

    @classmethod
    def get_instance(cls) -> CoreServices:
        """Get the singleton, building it from the environment on first use.

        Raises:
            ConfigurationError: If the vault secret is not configured
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls(CredentialVault.from_env())
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        with cls._lock:
            cls._instance = None
