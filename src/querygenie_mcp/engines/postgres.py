"""PostgreSQL adapter (psycopg driver)."""

from __future__ import annotations

import math
from typing import Any, ClassVar, Final

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from querygenie_mcp.errors import ExecutionErrorKind
from querygenie_mcp.models import ConnectionConfig, EngineKind

from .base import EngineAdapter, EngineHandle, native_error, quote_literal

SYSTEM_SCHEMAS: Final[str] = "('pg_catalog', 'information_schema', 'pg_toast')"

SQLSTATE_KINDS: Final[dict[str, ExecutionErrorKind]] = {
    "42P01": "NoSuchTable",
    "3F000": "NoSuchTable",  # invalid_schema_name
    "42703": "NoSuchColumn",
    "42601": "SyntaxError",
    "57014": "Timeout",  # query_canceled (statement_timeout)
}

TABLES_SQL: Final[str] = f"""
SELECT table_schema, table_name
FROM information_schema.tables
WHERE table_schema NOT IN {SYSTEM_SCHEMAS}
  AND table_type = 'BASE TABLE'
ORDER BY table_schema, table_name
"""

COLUMNS_SQL: Final[str] = f"""
SELECT
  table_schema,
  table_name,
  column_name,
  data_type,
  is_nullable = 'YES' AS is_nullable
FROM information_schema.columns
WHERE table_schema NOT IN {SYSTEM_SCHEMAS}
ORDER BY table_schema, table_name, ordinal_position
"""

CONSTRAINTS_SQL: Final[str] = f"""
SELECT
  kcu.table_schema,
  kcu.table_name,
  kcu.column_name,
  tc.constraint_type,
  CASE WHEN ref.table_name IS NOT NULL
       THEN ref.table_schema || '.' || ref.table_name END AS foreign_table,
  ref.column_name AS foreign_column
FROM information_schema.table_constraints tc
JOIN information_schema.key_column_usage kcu
  ON tc.constraint_name = kcu.constraint_name
  AND tc.constraint_schema = kcu.constraint_schema
  AND tc.table_name = kcu.table_name
LEFT JOIN information_schema.referential_constraints rc
  ON tc.constraint_type = 'FOREIGN KEY'
  AND rc.constraint_name = tc.constraint_name
  AND rc.constraint_schema = tc.constraint_schema
LEFT JOIN information_schema.key_column_usage ref
  ON ref.constraint_name = rc.unique_constraint_name
  AND ref.constraint_schema = rc.unique_constraint_schema
  AND ref.ordinal_position = kcu.position_in_unique_constraint
WHERE tc.constraint_type IN ('PRIMARY KEY', 'FOREIGN KEY')
  AND tc.table_schema NOT IN {SYSTEM_SCHEMAS}
ORDER BY kcu.table_schema, kcu.table_name, kcu.ordinal_position
"""

SCHEMATA_SQL: Final[str] = f"""
SELECT schema_name
FROM information_schema.schemata
WHERE schema_name NOT IN {SYSTEM_SCHEMAS}
ORDER BY schema_name
"""


class PostgresAdapter(EngineAdapter):
    """Adapter for PostgreSQL servers."""

    kind: ClassVar[EngineKind] = "postgres"
    driver: ClassVar[str] = "postgresql+psycopg"

    def connect_args(self, config: ConnectionConfig, timeout_ms: int) -> dict[str, Any]:
        # statement_timeout makes the server cancel the statement itself
        args: dict[str, Any] = {
            "connect_timeout": max(1, math.ceil(timeout_ms / 1000)),
            "options": f"-c statement_timeout={int(timeout_ms)}",
        }
        ssl = config.ssl
        if ssl is not None and ssl.enabled:
            args["sslmode"] = "verify-full" if ssl.reject_unauthorized else "require"
            if ssl.ca:
                args["sslrootcert"] = ssl.ca
            if ssl.cert:
                args["sslcert"] = ssl.cert
            if ssl.key:
                args["sslkey"] = ssl.key
        return args

    def classify(self, exc: SQLAlchemyError) -> ExecutionErrorKind:
        orig = native_error(exc)
        code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        if isinstance(code, str) and code in SQLSTATE_KINDS:
            return SQLSTATE_KINDS[code]
        if isinstance(exc, OperationalError) and "statement timeout" in str(exc).lower():
            return "Timeout"
        return "Unclassified"

    def exploration_query(self, schema_name: str | None) -> str:
        if schema_name:
            exact = quote_literal(schema_name)
            pattern = quote_literal(f"%{schema_name}%")
            return f"""
WITH schema_tables AS (
  SELECT t.schemaname, t.tablename
  FROM pg_tables t
  WHERE t.schemaname = {exact}
     OR LOWER(t.schemaname) = LOWER({exact})
     OR t.schemaname ILIKE {pattern}
  UNION
  SELECT n.nspname AS schemaname, c.relname AS tablename
  FROM pg_class c
  JOIN pg_namespace n ON n.oid = c.relnamespace
  WHERE c.relkind IN ('r', 'v', 'm')
    AND (n.nspname = {exact}
     OR LOWER(n.nspname) = LOWER({exact})
     OR n.nspname ILIKE {pattern})
)
SELECT
  st.schemaname,
  st.tablename,
  COALESCE(string_agg(DISTINCT c.column_name, ', ' ORDER BY c.column_name), '') AS columns
FROM schema_tables st
LEFT JOIN information_schema.columns c
  ON LOWER(c.table_schema) = LOWER(st.schemaname)
  AND LOWER(c.table_name) = LOWER(st.tablename)
GROUP BY st.schemaname, st.tablename
ORDER BY st.schemaname, st.tablename
LIMIT 200""".strip()
        return """
SELECT
  table_schema AS schema,
  table_name AS table,
  string_agg(column_name, ', ' ORDER BY ordinal_position) AS columns
FROM information_schema.columns
WHERE table_schema NOT IN ('pg_catalog', 'information_schema')
GROUP BY table_schema, table_name
ORDER BY table_schema, table_name
LIMIT 200""".strip()

    def table_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, TABLES_SQL)

    def column_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, COLUMNS_SQL)

    def constraint_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, CONSTRAINTS_SQL)

    def schema_names(self, handle: EngineHandle) -> list[str]:
        return [row["schema_name"] for row in self.fetch_dicts(handle, SCHEMATA_SQL)]
