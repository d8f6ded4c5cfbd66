from __future__ import annotations

import logging

import pytest

from querygenie_mcp.sqlglot_tools import SqlglotService, map_engine_to_sqlglot
from querygenie_mcp.sqlglot_tools.models import SqlErrorAssistRequest, SqlValidationRequest


def test_map_engine_to_sqlglot_known() -> None:
    assert map_engine_to_sqlglot("postgres") == "postgres"
    assert map_engine_to_sqlglot("mssql") == "tsql"
    assert map_engine_to_sqlglot("SQLite") == "sqlite"
    assert map_engine_to_sqlglot("oracle") == "sql"


def test_validate() -> None:
    svc = SqlglotService(logger=logging.getLogger(__name__))
    v = svc.validate(SqlValidationRequest(sql="select 1", dialect="postgres"))
    assert v.is_valid is True
    assert v.normalized_sql is not None

    bad = svc.validate(SqlValidationRequest(sql="SELECT * FROM users WHERE (id = 1", dialect="postgres"))
    assert bad.is_valid is False
    assert bad.error_message


@pytest.mark.parametrize(
    ("sql", "returns_rows", "has_limit"),
    [
        ("SELECT * FROM users", True, False),
        ("SELECT * FROM users LIMIT 5", True, True),
        ("SELECT * FROM (SELECT * FROM users LIMIT 5) AS u", True, False),
        ("WITH x AS (SELECT 1 AS a) SELECT a FROM x", True, False),
        ("SELECT 1 UNION SELECT 2", True, False),
        ("UPDATE users SET name = 'x'", False, False),
    ],
)
def test_shape(sql: str, returns_rows: bool, has_limit: bool) -> None:  # noqa: FBT001
    shape = SqlglotService().shape(sql, "postgres")
    assert shape.parsed is True
    assert shape.returns_rows is returns_rows
    assert shape.has_outer_limit is has_limit


def test_shape_falls_back_when_unparseable() -> None:
    shape = SqlglotService().shape("SELECT * FROM t WHERE (( LIMIT 10", "postgres")
    assert shape.parsed is False
    assert shape.returns_rows is True
    assert shape.has_outer_limit is True


def test_error_assist_missing_table() -> None:
    svc = SqlglotService()
    res = svc.assist_error(
        SqlErrorAssistRequest(
            sql="SELECT * FROM missing", error_message="no such table: missing", dialect="sqlite"
        )
    )
    assert res.likely_causes
    assert "Run a schema exploration query to confirm table names" in res.suggested_fixes
    assert res.normalized_sql is not None


def test_error_assist_timeout_and_top() -> None:
    svc = SqlglotService()
    res = svc.assist_error(
        SqlErrorAssistRequest(
            sql="SELECT TOP 5 * FROM t",
            error_message="canceling statement due to statement timeout",
            dialect="postgres",
        )
    )
    assert "Replace T-SQL TOP with LIMIT" in res.suggested_fixes
    assert "Narrow the WHERE clause or lower the row limit" in res.suggested_fixes
