"""Single-statement execution against external engines.

`QueryExecutor` runs the fixed pipeline for every request:
- Lexical statement validation (single statement, administrative denylist)
- Access-mode check for write-shaped statements
- Row-limit injection for unbounded row-returning statements
- Credential decryption and one scoped engine session
- Result normalization and error classification

Expected failures never raise; they come back as an `ExecutionResult` with a
classified `ExecutionFailure`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import time

from fastmcp.utilities.logging import get_logger

from querygenie_mcp.engines.base import EngineAdapter, RawResult
from querygenie_mcp.engines.registry import get_adapter
from querygenie_mcp.errors import ExecutionError, QueryGenieError
from querygenie_mcp.execute.models import (
    CellValue,
    ExecutionFailure,
    ExecutionRequest,
    ExecutionResult,
)
from querygenie_mcp.execute.safety import (
    ensure_mode_allows,
    strip_comments,
    strip_trailing_semicolon,
    validate_statement,
)
from querygenie_mcp.schema_tools.constants import Constants
from querygenie_mcp.security.vault import CredentialVault
from querygenie_mcp.sqlglot_tools import SqlglotService
from querygenie_mcp.sqlglot_tools.models import SqlErrorAssistRequest

_logger = get_logger(__name__)

AdapterLookup = Callable[[str], EngineAdapter]


def _truncate_value(val: object, max_chars: int) -> CellValue:
    """Convert a single cell to a JSON-safe value, truncating long text."""
    if val is None:
        return None
    if isinstance(val, int | float | bool):
        return val
    if isinstance(val, bytes | bytearray | memoryview):
        s = bytes(val).hex()
    else:
        s = str(val)
    if len(s) > max_chars:
        return s[: max_chars - 1] + "…"
    return s


def normalize_rows(rows: Iterable[tuple[object, ...]], max_chars: int) -> list[list[CellValue]]:
    """Rows as positional lists; NULL stays ``None`` in every column."""
    return [[_truncate_value(val, max_chars) for val in row] for row in rows]


@dataclass(slots=True)
class ExecutionLimits:
    """Defaults applied when a request does not carry its own limits."""

    row_limit: int | None = 1000
    timeout_ms: int = 30_000
    max_cell_chars: int = 500


class QueryExecutor:
    """Safety-checked, single-statement executor.

    Stateless apart from its collaborators; safe to share across threads.
    """

    def __init__(
        self,
        vault: CredentialVault,
        *,
        adapters: AdapterLookup = get_adapter,
        glot: SqlglotService | None = None,
        limits: ExecutionLimits | None = None,
    ) -> None:
        self._vault = vault
        self._adapters = adapters
        self._glot = glot or SqlglotService()
        self._limits = limits or ExecutionLimits()

    # ---- public API -------------------------------------------------------
    def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Run one statement and return a normalized result."""
        start = time.perf_counter()
        sql = request.sql
        connection = request.connection
        limit = request.limit if request.limit is not None else self._limits.row_limit
        timeout_ms = request.timeout_ms or self._limits.timeout_ms

        preview = sql[: Constants.MAX_QUERY_DISPLAY] + (
            "..." if len(sql) > Constants.MAX_QUERY_DISPLAY else ""
        )
        _logger.info(
            "execute: start (engine=%s, mode=%s, limit=%s, timeout_ms=%d): %s",
            connection.engine,
            connection.mode,
            limit,
            timeout_ms,
            preview,
        )

        executed_sql: str | None = None
        adapter: EngineAdapter | None = None
        try:
            cleaned = validate_statement(sql)
            ensure_mode_allows(cleaned, connection)
            adapter = self._adapters(connection.engine)
            executed_sql = self.bound_statement(cleaned, adapter, limit)
            credentials = self._vault.credentials_for(connection)
            with adapter.session(connection, credentials, timeout_ms) as handle:
                raw = adapter.execute(
                    handle, executed_sql, fetch_limit=limit + 1 if limit else None
                )
        except ExecutionError as exc:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            _logger.warning("Execution error (%s): %s", exc.error_kind, exc)
            return ExecutionResult(
                success=False,
                executed_sql=executed_sql,
                elapsed_ms=elapsed_ms,
                error=ExecutionFailure(kind=exc.error_kind, message=str(exc)),
                assist_notes=self._assist_notes(executed_sql or sql, str(exc), adapter),
            )
        except QueryGenieError as exc:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            _logger.warning("Execution rejected (%s): %s", exc.error_kind, exc)
            return ExecutionResult(
                success=False,
                executed_sql=executed_sql,
                elapsed_ms=elapsed_ms,
                error=ExecutionFailure(kind=exc.error_kind, message=str(exc)),
            )

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        result = self._to_result(raw, limit, executed_sql, elapsed_ms)
        _logger.info(
            "Execution finished (elapsed_ms=%.1f, row_count=%d, truncated=%s)",
            elapsed_ms,
            result.row_count,
            result.truncated,
        )
        return result

    def bound_statement(self, sql: str, adapter: EngineAdapter, limit: int | None) -> str:
        """Strip comments and a trailing semicolon, then append a limit clause when unbounded.

        Only row-returning statements without an outermost limit are bounded.
        The comment-free text is what gets dispatched.
        """
        base_sql = strip_trailing_semicolon(strip_comments(sql))
        if not limit:
            return base_sql
        shape = self._glot.shape(base_sql, adapter.sqlglot_dialect)
        if not shape.returns_rows or shape.has_outer_limit:
            return base_sql
        return f"{base_sql}\n{adapter.limit_clause(limit)}"

    # ---- internal ---------------------------------------------------------
    def _to_result(
        self, raw: RawResult, limit: int | None, executed_sql: str, elapsed_ms: float
    ) -> ExecutionResult:
        if not raw.returns_rows:
            return ExecutionResult(
                success=True,
                rows=None,
                row_count=raw.rowcount,
                statement_type="write",
                executed_sql=executed_sql,
                elapsed_ms=elapsed_ms,
            )

        fetched = raw.rows
        truncated = bool(limit) and len(fetched) > (limit or 0)
        if truncated:
            fetched = fetched[:limit]
        rows = normalize_rows(fetched, self._limits.max_cell_chars)
        return ExecutionResult(
            success=True,
            columns=raw.columns,
            rows=rows,
            row_count=len(rows),
            statement_type="read",
            truncated=truncated,
            executed_sql=executed_sql,
            elapsed_ms=elapsed_ms,
        )

    def _assist_notes(
        self, sql: str, error_message: str, adapter: EngineAdapter | None
    ) -> list[str]:
        if adapter is None:
            return []
        helpres = self._glot.assist_error(
            SqlErrorAssistRequest(
                sql=sql, error_message=error_message, dialect=adapter.sqlglot_dialect
            )
        )
        notes = [f"Cause: {c}" for c in helpres.likely_causes]
        notes.extend(f"Fix: {f}" for f in helpres.suggested_fixes)
        return notes
