"""MySQL adapter (PyMySQL driver)."""

from __future__ import annotations

import math
from typing import Any, ClassVar, Final

from fastmcp.utilities.logging import get_logger
from sqlalchemy.exc import SQLAlchemyError

from querygenie_mcp.errors import ExecutionErrorKind
from querygenie_mcp.models import ConnectionConfig, EngineKind

from .base import EngineAdapter, EngineHandle, native_error, quote_literal

_logger = get_logger(__name__)

ERRNO_KINDS: Final[dict[int, ExecutionErrorKind]] = {
    1146: "NoSuchTable",  # ER_NO_SUCH_TABLE
    1049: "NoSuchTable",  # ER_BAD_DB_ERROR
    1054: "NoSuchColumn",  # ER_BAD_FIELD_ERROR
    1064: "SyntaxError",  # ER_PARSE_ERROR
    3024: "Timeout",  # ER_QUERY_TIMEOUT (MAX_EXECUTION_TIME)
    1317: "Timeout",  # ER_QUERY_INTERRUPTED
    2013: "Timeout",  # CR_SERVER_LOST during read_timeout
}

TABLES_SQL: Final[str] = """
SELECT TABLE_NAME AS table_name
FROM information_schema.TABLES
WHERE TABLE_SCHEMA = DATABASE()
  AND TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_NAME
"""

COLUMNS_SQL: Final[str] = """
SELECT
  TABLE_NAME AS table_name,
  COLUMN_NAME AS column_name,
  DATA_TYPE AS data_type,
  IS_NULLABLE = 'YES' AS is_nullable,
  COLUMN_KEY = 'PRI' AS is_primary
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = DATABASE()
ORDER BY TABLE_NAME, ORDINAL_POSITION
"""

CONSTRAINTS_SQL: Final[str] = """
SELECT
  TABLE_NAME AS table_name,
  COLUMN_NAME AS column_name,
  CASE WHEN CONSTRAINT_NAME = 'PRIMARY' THEN 'PRIMARY KEY' ELSE 'FOREIGN KEY' END
    AS constraint_type,
  REFERENCED_TABLE_NAME AS foreign_table,
  REFERENCED_COLUMN_NAME AS foreign_column
FROM information_schema.KEY_COLUMN_USAGE
WHERE TABLE_SCHEMA = DATABASE()
  AND (CONSTRAINT_NAME = 'PRIMARY' OR REFERENCED_TABLE_NAME IS NOT NULL)
ORDER BY TABLE_NAME, ORDINAL_POSITION
"""


class MySQLAdapter(EngineAdapter):
    """Adapter for MySQL and MariaDB servers.

    Tables are scoped to the connection's current database, so they carry no
    schema qualifier.
    """

    kind: ClassVar[EngineKind] = "mysql"
    driver: ClassVar[str] = "mysql+pymysql"

    def connect_args(self, config: ConnectionConfig, timeout_ms: int) -> dict[str, Any]:
        seconds = max(1, math.ceil(timeout_ms / 1000))
        args: dict[str, Any] = {
            "connect_timeout": seconds,
            "read_timeout": seconds,
            "write_timeout": seconds,
        }
        ssl = config.ssl
        if ssl is not None and ssl.enabled:
            args["ssl_verify_cert"] = ssl.reject_unauthorized
            args["ssl_verify_identity"] = ssl.reject_unauthorized
            if ssl.ca:
                args["ssl_ca"] = ssl.ca
            if ssl.cert:
                args["ssl_cert"] = ssl.cert
            if ssl.key:
                args["ssl_key"] = ssl.key
        return args

    def prepare_session(self, handle: EngineHandle) -> None:
        conn = handle.connection
        try:
            conn.exec_driver_sql(f"SET SESSION MAX_EXECUTION_TIME = {int(handle.timeout_ms)}")
        except SQLAlchemyError as e:
            # MariaDB names this max_statement_time; read_timeout still bounds the call
            _logger.debug("MAX_EXECUTION_TIME not applied: %s", e)
        # End the implicit transaction so each statement gets its own
        conn.commit()

    def classify(self, exc: SQLAlchemyError) -> ExecutionErrorKind:
        orig = native_error(exc)
        args = getattr(orig, "args", ())
        if args and isinstance(args[0], int):
            return ERRNO_KINDS.get(args[0], "Unclassified")
        return "Unclassified"

    def exploration_query(self, schema_name: str | None) -> str:
        if schema_name:
            exact = quote_literal(schema_name)
            pattern = quote_literal(f"%{schema_name}%")
            return f"""
SELECT
  TABLE_SCHEMA AS schema_name,
  TABLE_NAME AS table_name,
  GROUP_CONCAT(COLUMN_NAME ORDER BY ORDINAL_POSITION SEPARATOR ', ') AS columns
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = {exact}
   OR LOWER(TABLE_SCHEMA) = LOWER({exact})
   OR TABLE_SCHEMA LIKE {pattern}
GROUP BY TABLE_SCHEMA, TABLE_NAME
ORDER BY TABLE_SCHEMA, TABLE_NAME
LIMIT 200""".strip()
        return """
SELECT
  TABLE_NAME AS table_name,
  GROUP_CONCAT(COLUMN_NAME ORDER BY ORDINAL_POSITION SEPARATOR ', ') AS columns
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = DATABASE()
GROUP BY TABLE_NAME
ORDER BY TABLE_NAME
LIMIT 200""".strip()

    def table_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, TABLES_SQL)

    def column_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, COLUMNS_SQL)

    def constraint_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        return self.fetch_dicts(handle, CONSTRAINTS_SQL)
