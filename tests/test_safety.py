from __future__ import annotations

import pytest

from querygenie_mcp.errors import ForbiddenOperation, StatementValidationError
from querygenie_mcp.execute.safety import (
    ensure_mode_allows,
    is_write_statement,
    statement_type,
    strip_comments,
    strip_trailing_semicolon,
    validate_statement,
)
from querygenie_mcp.models import ConnectionConfig

READ_ONLY = ConnectionConfig(engine="sqlite", database=":memory:")
READ_WRITE = ConnectionConfig(engine="sqlite", database=":memory:", mode="read-write")


def test_strip_semicolon() -> None:
    assert strip_trailing_semicolon("select 1;") == "select 1"
    assert strip_trailing_semicolon("  select 1 ;  ") == "select 1"
    assert strip_trailing_semicolon("select 1") == "select 1"


def test_strip_comments() -> None:
    sql = "SELECT a -- trailing note\nFROM t /* block\ncomment */ WHERE x = 1"
    cleaned = strip_comments(sql)
    assert "--" not in cleaned
    assert "/*" not in cleaned
    assert "FROM t" in cleaned


def test_single_statement_passes() -> None:
    assert validate_statement("SELECT 1;") == "SELECT 1;"
    assert validate_statement("SELECT 1 -- a; b\n") == "SELECT 1"


@pytest.mark.parametrize(
    "sql",
    ["SELECT 1; DROP TABLE x;", "SELECT 1; SELECT 2", "UPDATE t SET a=1; DELETE FROM t"],
)
def test_multi_statement_rejected(sql: str) -> None:
    with pytest.raises(StatementValidationError, match="Multiple SQL statements") as info:
        validate_statement(sql)
    assert info.value.error_kind == "ValidationError"


@pytest.mark.parametrize("sql", ["", "   ", "-- only a comment", ";"])
def test_empty_rejected(sql: str) -> None:
    with pytest.raises(StatementValidationError, match="empty"):
        validate_statement(sql)


@pytest.mark.parametrize(
    ("sql", "keyword"),
    [
        ("drop database prod", "DROP DATABASE"),
        ("CREATE DATABASE x", "CREATE DATABASE"),
        ("ALTER DATABASE x SET y", "ALTER DATABASE"),
        ("GRANT SELECT ON t TO bob", "GRANT"),
        ("revoke all on t from bob", "REVOKE"),
        ("CREATE USER bob", "CREATE USER"),
        ("DROP USER bob", "DROP USER"),
        ("ALTER USER bob WITH PASSWORD 'x'", "ALTER USER"),
    ],
)
def test_denylist_names_keyword(sql: str, keyword: str) -> None:
    with pytest.raises(StatementValidationError, match=keyword):
        validate_statement(sql)


def test_denylist_is_lexical() -> None:
    # Substring match: a column containing a denylisted word is rejected too
    with pytest.raises(StatementValidationError, match="GRANT"):
        validate_statement("SELECT grant_id FROM awards")
    # DROP alone is not denylisted
    validate_statement("SELECT drop_rate FROM metrics")


@pytest.mark.parametrize(
    "sql",
    [
        "INSERT INTO t VALUES (1)",
        "  update t set a = 1",
        "\n\tDELETE FROM t",
        "create table x(a int)",
        "DROP TABLE x",
        "Alter table x add column b int",
        "TRUNCATE TABLE x",
        "/* note */ DELETE FROM t",
    ],
)
def test_write_rejected_on_read_only(sql: str) -> None:
    assert is_write_statement(sql)
    with pytest.raises(ForbiddenOperation) as info:
        ensure_mode_allows(sql, READ_ONLY)
    assert info.value.error_kind == "ForbiddenOperation"
    ensure_mode_allows(sql, READ_WRITE)


def test_reads_allowed_on_read_only() -> None:
    ensure_mode_allows("SELECT * FROM updates", READ_ONLY)
    ensure_mode_allows("WITH x AS (SELECT 1) SELECT * FROM x", READ_ONLY)
    assert statement_type("SELECT 1") == "read"
    assert statement_type("insert into t values (1)") == "write"
