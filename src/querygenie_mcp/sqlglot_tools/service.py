"""Sqlglot service layer providing typed, pure operations.

All methods are side-effect-free and avoid raising on unparseable SQL;
callers always receive a structured result.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache
import logging
import re

from fastmcp.utilities.logging import get_logger
import sqlglot
from sqlglot import expressions as sgl_exp

from .models import (
    Dialect,
    SqlErrorAssistRequest,
    SqlErrorAssistResult,
    SqlValidationRequest,
    SqlValidationResult,
    StatementShape,
)

ENGINE_TO_SQLGLOT: dict[str, Dialect] = {
    "postgres": "postgres",
    "postgresql": "postgres",
    "mysql": "mysql",
    "sqlite": "sqlite",
    "mssql": "tsql",
}

_ROW_QUERY_TYPES = (sgl_exp.Select, sgl_exp.Union, sgl_exp.Except, sgl_exp.Intersect)
_LIMIT_RE = re.compile(r"\bLIMIT\s+\d+", re.IGNORECASE)
_ROW_LEAD_RE = re.compile(r"^\s*\(?\s*(SELECT|WITH)\b", re.IGNORECASE)


def map_engine_to_sqlglot(engine: str) -> Dialect:
    """Map an engine kind to a sqlglot dialect literal.

    Falls back to generic "sql" when unknown.
    """
    return ENGINE_TO_SQLGLOT.get(engine.lower(), "sql")


@lru_cache(maxsize=256)
def _cached_parse(sql: str, dialect: Dialect) -> sqlglot.Expression | None:
    """Small cache for parse results; exploration queries repeat often."""
    return sqlglot.parse_one(sql, dialect=dialect)


class SqlglotService:
    """Typed wrapper around the sqlglot features the executor relies on."""

    def __init__(
        self, default_dialect: Dialect = "sql", logger: logging.Logger | None = None
    ) -> None:
        self.default_dialect = default_dialect
        self._logger = logger or get_logger(__name__)

    # ---- validation -----------------------------------------------------
    def validate(self, req: SqlValidationRequest) -> SqlValidationResult:
        """Parse and validate SQL, returning pretty SQL on success."""
        try:
            parsed = _cached_parse(req.sql, req.dialect)
        except Exception as e:  # noqa: BLE001 - returning typed error
            return SqlValidationResult(
                is_valid=False,
                error_message=f"SQL parsing error: {e}",
                target_dialect=req.dialect,
            )
        if parsed is None:
            return SqlValidationResult(
                is_valid=False,
                error_message="Failed to parse SQL query",
                target_dialect=req.dialect,
            )
        return SqlValidationResult(
            is_valid=True,
            normalized_sql=parsed.sql(dialect=req.dialect, pretty=True),
            target_dialect=req.dialect,
        )

    # ---- statement shape ------------------------------------------------
    def shape(self, sql: str, dialect: Dialect | None = None) -> StatementShape:
        """Classify a statement for row bounding.

        When sqlglot cannot parse the statement the leading keyword and a
        ``LIMIT <n>`` scan stand in for the AST.
        """
        target = dialect or self.default_dialect
        try:
            parsed = _cached_parse(sql, target)
        except Exception as e:  # noqa: BLE001 - fall back to lexical checks
            self._logger.debug("Shape parse failed for %s: %s", target, e)
            parsed = None

        if parsed is None:
            return StatementShape(
                parsed=False,
                returns_rows=bool(_ROW_LEAD_RE.match(sql)),
                has_outer_limit=bool(_LIMIT_RE.search(sql)),
            )

        returns_rows = isinstance(parsed, _ROW_QUERY_TYPES)
        # Subquery limits live on nested nodes; only the outermost node counts.
        has_limit = returns_rows and parsed.args.get("limit") is not None
        return StatementShape(parsed=True, returns_rows=returns_rows, has_outer_limit=has_limit)

    # ---- error assist ---------------------------------------------------
    def assist_error(self, req: SqlErrorAssistRequest) -> SqlErrorAssistResult:
        """Heuristic assistance for execution-time SQL errors.

        This does not execute SQL; it parses the statement and inspects the
        error string.
        """
        normalized: str | None = None
        likely: list[str] = []
        fixes: list[str] = []

        val = self.validate(SqlValidationRequest(sql=req.sql, dialect=req.dialect))
        if val.is_valid and val.normalized_sql is not None:
            normalized = val.normalized_sql

        emsg = req.error_message.lower()
        lowered_sql = req.sql.lower()

        def add_if(cond: bool, items: Iterable[str]) -> None:  # noqa: FBT001
            if cond:
                likely.extend(items)

        add_if(
            "syntax" in emsg or "mismatched input" in emsg,
            ["SQL syntax near the reported token is invalid for this dialect"],
        )
        add_if(
            "no such table" in emsg
            or ("relation" in emsg and "does not exist" in emsg)
            or ("table" in emsg and "doesn't exist" in emsg),
            ["Referenced table name may be wrong or live in another schema"],
        )
        add_if(
            "no such column" in emsg
            or ("column" in emsg and "does not exist" in emsg)
            or "unknown column" in emsg,
            ["A selected or filtered column is misspelled or not present"],
        )
        add_if(
            "timeout" in emsg or "canceling statement" in emsg or "interrupted" in emsg,
            ["The statement ran longer than the allowed execution time"],
        )
        add_if(
            "function" in emsg and "does not exist" in emsg,
            ["Function is unsupported or has different name/arg types in this dialect"],
        )

        if "top " in lowered_sql and req.dialect in {"postgres", "mysql", "sqlite"}:
            fixes.append("Replace T-SQL TOP with LIMIT")
        if any(fn in lowered_sql for fn in ("ifnull(", "isnull(", "nvl(")):
            fixes.append("Use COALESCE for portable null handling")
        if "timeout" in emsg or "canceling statement" in emsg or "interrupted" in emsg:
            fixes.append("Narrow the WHERE clause or lower the row limit")
        if "no such table" in emsg or "does not exist" in emsg or "doesn't exist" in emsg:
            fixes.append("Run a schema exploration query to confirm table names")

        return SqlErrorAssistResult(
            normalized_sql=normalized,
            likely_causes=sorted(set(likely)),
            suggested_fixes=sorted(set(fixes)),
            target_dialect=req.dialect,
        )
