"""Request and result models for single-statement execution."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from querygenie_mcp.errors import ErrorKind
from querygenie_mcp.models import ConnectionConfig

CellValue = str | int | float | bool | None


class ExecutionRequest(BaseModel):
    """One statement to run against one resolved connection."""

    connection: ConnectionConfig = Field(description="Resolved connection with encrypted secrets")
    sql: str = Field(description="A single SQL statement")
    limit: int | None = Field(
        default=None, ge=1, description="Row limit; the executor default applies when omitted"
    )
    timeout_ms: int | None = Field(
        default=None, ge=1, description="Statement timeout; the executor default applies when omitted"
    )


class ExecutionFailure(BaseModel):
    """Classified failure with a stable kind tag."""

    kind: ErrorKind = Field(description="Stable error kind")
    message: str = Field(description="Human-readable message, safe to show to users")


class ExecutionResult(BaseModel):
    """Outcome of one statement.

    For row-returning statements ``rows`` is positionally aligned with
    ``columns`` and ``len(rows) == row_count``. For write statements ``rows``
    is ``None`` and ``row_count`` is the number of rows affected.
    """

    success: bool = Field(description="True when the statement ran to completion")
    columns: list[str] = Field(default_factory=list, description="Column names in engine order")
    rows: list[list[CellValue]] | None = Field(
        default=None, description="Rows as positional lists; None marks SQL NULL"
    )
    row_count: int = Field(default=0, description="Rows returned, or rows affected for writes")
    statement_type: Literal["read", "write"] | None = Field(
        default=None, description="Whether the statement returned rows"
    )
    truncated: bool = Field(default=False, description="More rows existed than the row limit")
    executed_sql: str | None = Field(
        default=None, description="Statement as dispatched, including any injected limit"
    )
    elapsed_ms: float = Field(default=0.0, description="Wall-clock time spent in the call")
    error: ExecutionFailure | None = Field(default=None, description="Set when success is False")
    assist_notes: list[str] = Field(
        default_factory=list, description="Hints for recovering from an execution error"
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="UTC ISO8601 timestamp of completion",
    )
