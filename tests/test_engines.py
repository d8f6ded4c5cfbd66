from __future__ import annotations

import sqlite3

import pytest
import sqlalchemy as sa

from querygenie_mcp.engines.mysql import MySQLAdapter
from querygenie_mcp.engines.postgres import PostgresAdapter
from querygenie_mcp.engines.registry import get_adapter, supported_engines
from querygenie_mcp.engines.sqlite import SQLiteAdapter
from querygenie_mcp.errors import DatabaseConnectionError, UnsupportedEngine
from querygenie_mcp.models import ConnectionConfig, Credentials, SslConfig
from querygenie_mcp.security.vault import CredentialVault


class _PgError(Exception):
    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def _wrapped(
    orig: Exception, cls: type[sa.exc.DBAPIError] = sa.exc.ProgrammingError
) -> sa.exc.DBAPIError:
    return cls("SELECT 1", {}, orig)


def test_registry_lists_adapters() -> None:
    assert supported_engines() == ["mysql", "postgres", "sqlite"]
    assert isinstance(get_adapter("postgres"), PostgresAdapter)


@pytest.mark.parametrize(
    ("kind", "dialect"), [("postgres", "postgres"), ("mysql", "mysql"), ("sqlite", "sqlite")]
)
def test_adapter_sqlglot_dialect(kind: str, dialect: str) -> None:
    assert get_adapter(kind).sqlglot_dialect == dialect


def test_unparseable_url_is_connection_error() -> None:
    credentials = Credentials(connection_string="not a url at all")
    config = ConnectionConfig(engine="postgres", encrypted_connection_string="x")
    with pytest.raises(DatabaseConnectionError, match="connection settings are invalid") as info:
        PostgresAdapter().connect(config, credentials, 1000)
    assert "not a url" not in str(info.value)
    assert isinstance(info.value.__cause__, sa.exc.ArgumentError)


@pytest.mark.parametrize("kind", ["mssql", "oracle", ""])
def test_registry_rejects_unsupported(kind: str) -> None:
    with pytest.raises(UnsupportedEngine, match="not yet supported"):
        get_adapter(kind)


@pytest.mark.parametrize("kind", ["postgres", "mysql", "sqlite"])
def test_limit_clause(kind: str) -> None:
    assert get_adapter(kind).limit_clause(100) == "LIMIT 100"


@pytest.mark.parametrize(
    ("sqlstate", "kind"),
    [
        ("42P01", "NoSuchTable"),
        ("42703", "NoSuchColumn"),
        ("42601", "SyntaxError"),
        ("57014", "Timeout"),
        ("23505", "Unclassified"),
    ],
)
def test_postgres_classify(sqlstate: str, kind: str) -> None:
    exc = _wrapped(_PgError("boom", sqlstate))
    assert PostgresAdapter().classify(exc) == kind


@pytest.mark.parametrize(
    ("errno", "kind"),
    [
        (1146, "NoSuchTable"),
        (1054, "NoSuchColumn"),
        (1064, "SyntaxError"),
        (3024, "Timeout"),
        (1062, "Unclassified"),
    ],
)
def test_mysql_classify(errno: int, kind: str) -> None:
    exc = _wrapped(Exception(errno, "server said no"))
    assert MySQLAdapter().classify(exc) == kind


@pytest.mark.parametrize(
    ("message", "kind"),
    [
        ("no such table: widgets", "NoSuchTable"),
        ("no such column: nope", "NoSuchColumn"),
        ('near "SELEC": syntax error', "SyntaxError"),
        ("interrupted", "Timeout"),
        ("database is locked", "Unclassified"),
    ],
)
def test_sqlite_classify(message: str, kind: str) -> None:
    exc = _wrapped(sqlite3.OperationalError(message), sa.exc.OperationalError)
    assert SQLiteAdapter().classify(exc) == kind


def test_timeout_message_is_prefixed() -> None:
    exc = _wrapped(sqlite3.OperationalError("interrupted"), sa.exc.OperationalError)
    err = SQLiteAdapter().wrap_error(exc)
    assert err.error_kind == "Timeout"
    assert str(err).startswith("Query timeout exceeded")


def test_build_url_from_fields() -> None:
    config = ConnectionConfig(engine="postgres", host="db", port=5433, database="app", username="bob")
    url = PostgresAdapter().build_url(config, Credentials(password="s3cret"))
    assert url.drivername == "postgresql+psycopg"
    assert (url.host, url.port, url.database, url.username, url.password) == (
        "db",
        5433,
        "app",
        "bob",
        "s3cret",
    )


def test_build_url_forces_driver_on_connection_string() -> None:
    config = ConnectionConfig(engine="mysql")
    url = MySQLAdapter().build_url(config, Credentials(connection_string="mysql://u:p@h:3306/shop"))
    assert url.drivername == "mysql+pymysql"
    assert url.database == "shop"


def test_sqlite_url_uses_file_path() -> None:
    config = ConnectionConfig(engine="sqlite", database="/tmp/app.db")
    url = SQLiteAdapter().build_url(config, Credentials())
    assert url.drivername == "sqlite+pysqlite"
    assert url.database == "/tmp/app.db"


def test_postgres_connect_args_carry_statement_timeout() -> None:
    args = PostgresAdapter().connect_args(ConnectionConfig(engine="postgres"), 2500)
    assert args["options"] == "-c statement_timeout=2500"
    assert args["connect_timeout"] == 3
    assert "sslmode" not in args


def test_postgres_connect_args_ssl() -> None:
    config = ConnectionConfig(
        engine="postgres", ssl=SslConfig(enabled=True, reject_unauthorized=False, ca="/etc/ca.pem")
    )
    args = PostgresAdapter().connect_args(config, 1000)
    assert args["sslmode"] == "require"
    assert args["sslrootcert"] == "/etc/ca.pem"


def test_mysql_connect_args_timeouts() -> None:
    args = MySQLAdapter().connect_args(ConnectionConfig(engine="mysql"), 10_000)
    assert args["read_timeout"] == 10
    assert args["connect_timeout"] == 10


def test_exploration_query_quotes_schema_name() -> None:
    sql = PostgresAdapter().exploration_query("bil'ling")
    assert "'bil''ling'" in sql
    assert "'%bil''ling%'" in sql
    assert sql.rstrip().endswith("LIMIT 200")


def test_exploration_query_unfiltered() -> None:
    sql = MySQLAdapter().exploration_query(None)
    assert "DATABASE()" in sql


def test_sqlite_exploration_runs(vault: CredentialVault, sqlite_connection: ConnectionConfig) -> None:
    adapter = SQLiteAdapter()
    config = sqlite_connection
    with adapter.session(config, vault.credentials_for(config), 5000) as handle:
        raw = adapter.execute(handle, adapter.exploration_query("main"))
    assert raw.columns == ["table_name", "columns"]
    assert [row[0] for row in raw.rows] == ["orders", "user_sessions", "users"]
    assert set(raw.rows[2][1].split(", ")) == {"id", "email", "name"}
