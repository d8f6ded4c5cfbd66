"""Live schema introspection into the canonical model.

`SchemaIntrospector` opens one scoped session, runs the adapter's catalog
queries and folds the rows into a `CanonicalSchema`. Identifiers keep the
case the engine reports.
"""

from __future__ import annotations

from collections.abc import Callable

from fastmcp.utilities.logging import get_logger

from querygenie_mcp.engines.base import EngineAdapter, RawCatalog
from querygenie_mcp.engines.registry import get_adapter
from querygenie_mcp.models import ConnectionConfig, EngineKind
from querygenie_mcp.schema_tools.models import (
    CanonicalSchema,
    ColumnInfo,
    ForeignKeyRef,
    TableInfo,
)
from querygenie_mcp.security.vault import CredentialVault

_logger = get_logger(__name__)

TableKey = tuple[str | None, str]
ColumnKey = tuple[str | None, str, str]


class SchemaIntrospector:
    """Reads catalog metadata from an external engine."""

    def __init__(
        self,
        vault: CredentialVault,
        *,
        adapters: Callable[[str], EngineAdapter] = get_adapter,
        timeout_ms: int = 30_000,
    ) -> None:
        self._vault = vault
        self._adapters = adapters
        self._timeout_ms = timeout_ms

    def introspect(self, config: ConnectionConfig) -> CanonicalSchema:
        """Introspect the live schema behind ``config``.

        Raises:
            UnsupportedEngine: For engine kinds without an adapter
            DecryptionError: When the stored secret cannot be decrypted
            DatabaseConnectionError: When the engine cannot be reached
            ExecutionError: When the table or column query fails
        """
        adapter = self._adapters(config.engine)
        credentials = self._vault.credentials_for(config)
        _logger.info("Introspecting %s", config.describe())
        with adapter.session(config, credentials, self._timeout_ms) as handle:
            catalog = adapter.introspect_catalog(handle)

        schema = fold_catalog(config.engine, catalog)
        _logger.info(
            "Introspection finished (tables=%d, complete=%s)", len(schema.tables), schema.complete
        )
        return schema


def fold_catalog(engine: EngineKind, catalog: RawCatalog) -> CanonicalSchema:
    """Fold raw catalog rows into a `CanonicalSchema`.

    Table order follows the table query. Columns reported for relations that
    are not in the table list (views) are ignored.
    """
    primary: set[ColumnKey] = set()
    foreign: dict[ColumnKey, ForeignKeyRef] = {}
    for row in catalog.constraints or []:
        key = (row.get("table_schema"), row["table_name"], row["column_name"])
        if row.get("constraint_type") == "PRIMARY KEY":
            primary.add(key)
        elif row.get("foreign_table"):
            foreign[key] = ForeignKeyRef(table=row["foreign_table"], column=row.get("foreign_column"))

    columns_by_table: dict[TableKey, list[ColumnInfo]] = {}
    for row in catalog.tables:
        columns_by_table.setdefault((row.get("table_schema"), row["table_name"]), [])

    for row in catalog.columns:
        table_key = (row.get("table_schema"), row["table_name"])
        bucket = columns_by_table.get(table_key)
        if bucket is None:
            continue
        column_key = (*table_key, row["column_name"])
        ref = foreign.get(column_key)
        bucket.append(
            ColumnInfo(
                name=row["column_name"],
                type=str(row.get("data_type") or ""),
                nullable=bool(row.get("is_nullable", True)),
                is_primary=bool(row.get("is_primary")) or column_key in primary,
                is_foreign=ref is not None,
                references=ref,
            )
        )

    tables = tuple(
        TableInfo(schema_name=schema_name, name=name, columns=tuple(cols))
        for (schema_name, name), cols in columns_by_table.items()
    )
    schemas = catalog.schemas or sorted({t.schema_name for t in tables if t.schema_name})
    return CanonicalSchema(
        engine=engine,
        tables=tables,
        schemas=tuple(schemas),
        complete=catalog.constraints is not None,
        warnings=tuple(catalog.warnings),
    )
