"""Typed models for the sqlglot helpers.

Small result shapes consumed by the executor when bounding statements and
when attaching recovery notes to failed executions.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# Dialects of the engines that have adapters, plus the generic fallback.
Dialect = Literal["sql", "postgres", "mysql", "sqlite", "tsql"]


class SqlValidationRequest(BaseModel):
    """Request to parse a single statement for a dialect."""

    sql: str = Field(description="SQL string to validate")
    dialect: Dialect = Field(description="Target SQL dialect for parsing")


class SqlValidationResult(BaseModel):
    """Parse outcome with pretty SQL when parsing succeeds."""

    is_valid: bool = Field(description="True when the SQL parses successfully")
    error_message: str | None = Field(default=None, description="Parse error if invalid")
    normalized_sql: str | None = Field(
        default=None, description="Pretty-printed SQL when parsing succeeds"
    )
    target_dialect: Dialect = Field(description="Dialect used for parsing")


class StatementShape(BaseModel):
    """Top-level shape of a statement as far as row bounding is concerned."""

    parsed: bool = Field(description="Whether sqlglot could parse the statement")
    returns_rows: bool = Field(description="SELECT / set operation / WITH ... SELECT")
    has_outer_limit: bool = Field(description="The outermost query already carries a LIMIT")


class SqlErrorAssistRequest(BaseModel):
    """Request to assist with a database execution error."""

    sql: str = Field(description="The SQL that failed at execution time")
    error_message: str = Field(description="The database error text returned by the server")
    dialect: Dialect = Field(description="Target database dialect")


class SqlErrorAssistResult(BaseModel):
    """Hints for recovering from an execution error."""

    normalized_sql: str | None = Field(
        default=None, description="Parsed + pretty version to aid debugging"
    )
    likely_causes: list[str] = Field(
        default_factory=list, description="Short, concrete hypotheses for the failure"
    )
    suggested_fixes: list[str] = Field(
        default_factory=list, description="Small edits to try before re-running"
    )
    target_dialect: Dialect = Field(description="Dialect assumed for analysis")
