"""Exception hierarchy for querygenie-mcp.

Every failure raised by the core carries a stable ``kind`` tag alongside a
human-readable message so callers never depend on driver or provider SDK
exception types. Raw driver exceptions are always chained, never passed
through unwrapped.

Exception Categories:
- Connection and credential failures
- Statement validation failures (shape, denylist, access mode)
- Execution failures classified into a small stable taxonomy
- Engine selection failures
- Language-model provider failures (configuration vs. call)
"""

from __future__ import annotations

from typing import ClassVar, Literal

ExecutionErrorKind = Literal[
    "NoSuchTable",
    "NoSuchColumn",
    "SyntaxError",
    "Timeout",
    "Unclassified",
]

ErrorKind = Literal[
    "ConnectionError",
    "DecryptionError",
    "ValidationError",
    "ForbiddenOperation",
    "UnsupportedEngine",
    "ConfigurationError",
    "ProviderConfigurationError",
    "ProviderError",
    "NoSuchTable",
    "NoSuchColumn",
    "SyntaxError",
    "Timeout",
    "Unclassified",
]


class QueryGenieError(Exception):
    """Base exception for all core operations.

    Subclasses set ``kind`` to the stable tag surfaced to callers.
    """

    kind: ClassVar[ErrorKind] = "Unclassified"

    @property
    def error_kind(self) -> ErrorKind:
        return self.kind


class DatabaseConnectionError(QueryGenieError):
    """Raised when the external engine cannot be reached or authenticated.

    The message includes the engine-reported diagnostic.
    """

    kind: ClassVar[ErrorKind] = "ConnectionError"


class DecryptionError(QueryGenieError):
    """Raised when credential material cannot be decrypted.

    Always fatal to the call; callers must never fall back to treating the
    ciphertext as plaintext or to default credentials.
    """

    kind: ClassVar[ErrorKind] = "DecryptionError"


class StatementValidationError(QueryGenieError):
    """Raised when a statement's shape is rejected before dispatch."""

    kind: ClassVar[ErrorKind] = "ValidationError"


class ForbiddenOperation(StatementValidationError):
    """Raised when a write-shaped statement targets a read-only connection."""

    kind: ClassVar[ErrorKind] = "ForbiddenOperation"


class ExecutionError(QueryGenieError):
    """Raised when the engine rejects or aborts a dispatched statement."""

    def __init__(self, message: str, *, execution_kind: ExecutionErrorKind = "Unclassified") -> None:
        super().__init__(message)
        self.execution_kind: ExecutionErrorKind = execution_kind

    @property
    def error_kind(self) -> ErrorKind:
        return self.execution_kind


class UnsupportedEngine(QueryGenieError):
    """Raised at adapter selection for an engine kind with no adapter."""

    kind: ClassVar[ErrorKind] = "UnsupportedEngine"


class ConfigurationError(QueryGenieError):
    """Raised when required process configuration is missing or invalid."""

    kind: ClassVar[ErrorKind] = "ConfigurationError"


class ProviderConfigurationError(QueryGenieError):
    """Raised when a model-provider credential is missing or rejected."""

    kind: ClassVar[ErrorKind] = "ProviderConfigurationError"


class ProviderError(QueryGenieError):
    """Raised when the model call itself fails (network, timeout, bad output).

    ``timed_out`` is set when the call ran past the provider timeout.
    """

    kind: ClassVar[ErrorKind] = "ProviderError"

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out
