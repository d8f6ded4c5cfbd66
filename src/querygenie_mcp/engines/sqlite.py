"""SQLite adapter (stdlib sqlite3 through SQLAlchemy's pysqlite dialect)."""

from __future__ import annotations

import math
import time
from typing import Any, ClassVar, Final

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from querygenie_mcp.errors import ExecutionErrorKind
from querygenie_mcp.models import ConnectionConfig, Credentials, EngineKind

from .base import EngineAdapter, EngineHandle, native_error

# Number of VM instructions between deadline checks.
PROGRESS_INTERVAL: Final[int] = 1000

MESSAGE_KINDS: Final[tuple[tuple[str, ExecutionErrorKind], ...]] = (
    ("no such table", "NoSuchTable"),
    ("no such column", "NoSuchColumn"),
    ("syntax error", "SyntaxError"),
    ("incomplete input", "SyntaxError"),
    ("unrecognized token", "SyntaxError"),
    ("interrupted", "Timeout"),
)

USER_TABLES: Final[str] = "m.type = 'table' AND m.name NOT LIKE 'sqlite_%'"

TABLES_SQL: Final[str] = f"""
SELECT m.name AS table_name
FROM sqlite_master m
WHERE {USER_TABLES}
ORDER BY m.name
"""

COLUMNS_SQL: Final[str] = f"""
SELECT
  m.name AS table_name,
  p.name AS column_name,
  p.type AS data_type,
  p."notnull" = 0 AS is_nullable,
  p.pk > 0 AS is_primary
FROM sqlite_master m
JOIN pragma_table_info(m.name) p
WHERE {USER_TABLES}
ORDER BY m.name, p.cid
"""

CONSTRAINTS_SQL: Final[str] = f"""
SELECT
  m.name AS table_name,
  f."from" AS column_name,
  'FOREIGN KEY' AS constraint_type,
  f."table" AS foreign_table,
  f."to" AS foreign_column
FROM sqlite_master m
JOIN pragma_foreign_key_list(m.name) f
WHERE {USER_TABLES}
ORDER BY m.name, f.id, f.seq
"""


class SQLiteAdapter(EngineAdapter):
    """Adapter for SQLite database files.

    ``database`` on the connection record is the file path. SQLite has no
    server-side statement timeout, so a progress handler installed on each
    DBAPI connection interrupts statements that run past the deadline.
    """

    kind: ClassVar[EngineKind] = "sqlite"
    driver: ClassVar[str] = "sqlite+pysqlite"

    def build_url(self, config: ConnectionConfig, credentials: Credentials) -> sa.URL:
        if credentials.connection_string:
            return sa.make_url(credentials.connection_string).set(drivername=self.driver)
        return sa.URL.create(self.driver, database=config.database)

    def connect_args(self, config: ConnectionConfig, timeout_ms: int) -> dict[str, Any]:  # noqa: ARG002
        # Busy timeout while waiting on a locked database file
        return {"timeout": max(1, math.ceil(timeout_ms / 1000))}

    def configure_engine(self, engine: Engine, timeout_ms: int) -> None:
        budget = timeout_ms / 1000

        @event.listens_for(engine, "connect")
        def _install_deadline(dbapi_connection: Any, _record: Any) -> None:
            deadline = time.monotonic() + budget

            def _past_deadline() -> int:
                return 1 if time.monotonic() > deadline else 0

            dbapi_connection.set_progress_handler(_past_deadline, PROGRESS_INTERVAL)

        _ = _install_deadline

    def classify(self, exc: SQLAlchemyError) -> ExecutionErrorKind:
        orig = native_error(exc)
        text = str(orig if orig is not None else exc).lower()
        for needle, kind in MESSAGE_KINDS:
            if needle in text:
                return kind
        return "Unclassified"

    def exploration_query(self, schema_name: str | None) -> str:  # noqa: ARG002
        # Single namespace; the schema hint has nothing to filter on
        return """
SELECT
  m.name AS table_name,
  GROUP_CONCAT(p.name, ', ') AS columns
FROM sqlite_master m
JOIN pragma_table_info(m.name) p
WHERE m.type = 'table' AND m.name NOT LIKE 'sqlite_%'
GROUP BY m.name
ORDER BY m.name
LIMIT 200""".strip()

    def table_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, TABLES_SQL)

    def column_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, COLUMNS_SQL)

    def constraint_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        # Primary keys come from pragma_table_info in the column rows
        return self.fetch_dicts(handle, CONSTRAINTS_SQL)
