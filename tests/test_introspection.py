from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from querygenie_mcp.engines.base import EngineHandle, RawCatalog
from querygenie_mcp.engines.sqlite import SQLiteAdapter
from querygenie_mcp.errors import DatabaseConnectionError, ExecutionError
from querygenie_mcp.models import ConnectionConfig
from querygenie_mcp.schema_tools.introspection import SchemaIntrospector, fold_catalog
from querygenie_mcp.security.vault import CredentialVault


def test_sqlite_introspection(vault: CredentialVault, sqlite_connection: ConnectionConfig) -> None:
    schema = SchemaIntrospector(vault).introspect(sqlite_connection)

    assert schema.engine == "sqlite"
    assert schema.complete is True
    assert [t.name for t in schema.tables] == ["orders", "user_sessions", "users"]

    users = schema.tables[2]
    assert users.schema_name is None
    assert [c.name for c in users.columns] == ["id", "email", "name"]
    id_col, email, name = users.columns
    assert id_col.is_primary is True
    assert email.nullable is False
    assert name.nullable is True

    orders = schema.tables[0]
    user_id = next(c for c in orders.columns if c.name == "user_id")
    assert user_id.is_foreign is True
    assert user_id.references is not None
    assert (user_id.references.table, user_id.references.column) == ("users", "id")


def test_identifier_case_is_preserved(vault: CredentialVault, sqlite_connection: ConnectionConfig) -> None:
    adapter = SQLiteAdapter()
    with adapter.session(sqlite_connection, vault.credentials_for(sqlite_connection), 5000) as handle:
        adapter.execute(handle, 'CREATE TABLE "CustomerAccounts"("AccountId" INTEGER PRIMARY KEY)')

    schema = SchemaIntrospector(vault).introspect(sqlite_connection)
    table = next(t for t in schema.tables if t.name.lower() == "customeraccounts")
    assert table.name == "CustomerAccounts"
    assert table.columns[0].name == "AccountId"


def test_constraint_failure_yields_partial_schema(
    vault: CredentialVault, sqlite_connection: ConnectionConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(self: SQLiteAdapter, handle: EngineHandle) -> list[dict[str, Any]]:
        raise OperationalError("pragma", {}, Exception("permission denied for catalog"))

    monkeypatch.setattr(SQLiteAdapter, "constraint_rows", _fail)
    schema = SchemaIntrospector(vault).introspect(sqlite_connection)

    assert schema.complete is False
    assert len(schema.tables) == 3
    assert any("permission denied" in w for w in schema.warnings)
    assert all(not c.is_foreign for t in schema.tables for c in t.columns)


def test_column_failure_is_an_error(
    vault: CredentialVault, sqlite_connection: ConnectionConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(self: SQLiteAdapter, handle: EngineHandle) -> list[dict[str, Any]]:
        raise OperationalError("pragma", {}, Exception("no such table: sqlite_master"))

    monkeypatch.setattr(SQLiteAdapter, "column_rows", _fail)
    with pytest.raises(ExecutionError):
        SchemaIntrospector(vault).introspect(sqlite_connection)


def test_fold_catalog_with_schemas() -> None:
    catalog = RawCatalog(
        tables=[
            {"table_schema": "billing", "table_name": "invoices"},
            {"table_schema": "public", "table_name": "customers"},
        ],
        columns=[
            {"table_schema": "billing", "table_name": "invoices", "column_name": "id",
             "data_type": "integer", "is_nullable": False},
            {"table_schema": "billing", "table_name": "invoices", "column_name": "customer_id",
             "data_type": "integer", "is_nullable": True},
            {"table_schema": "public", "table_name": "customers", "column_name": "id",
             "data_type": "integer", "is_nullable": False},
            {"table_schema": "public", "table_name": "customer_view", "column_name": "id",
             "data_type": "integer", "is_nullable": True},
        ],
        constraints=[
            {"table_schema": "billing", "table_name": "invoices", "column_name": "id",
             "constraint_type": "PRIMARY KEY", "foreign_table": None, "foreign_column": None},
            {"table_schema": "billing", "table_name": "invoices", "column_name": "customer_id",
             "constraint_type": "FOREIGN KEY", "foreign_table": "public.customers",
             "foreign_column": "id"},
        ],
    )
    schema = fold_catalog("postgres", catalog)

    assert [t.qualified_name for t in schema.tables] == ["billing.invoices", "public.customers"]
    assert schema.schemas == ("billing", "public")
    invoices = schema.tables[0]
    assert invoices.columns[0].is_primary is True
    assert invoices.columns[1].references is not None
    assert invoices.columns[1].references.table == "public.customers"
    assert schema.tables[1].columns[0].is_primary is False
    assert schema.complete is True


def test_fold_catalog_empty() -> None:
    schema = fold_catalog("mysql", RawCatalog(tables=[], columns=[], constraints=[]))
    assert schema.is_empty


def test_unparseable_connection_string_raises_connection_error(vault: CredentialVault) -> None:
    config = ConnectionConfig(
        engine="postgres", encrypted_connection_string=vault.encrypt("not a url at all")
    )
    with pytest.raises(DatabaseConnectionError):
        SchemaIntrospector(vault).introspect(config)
