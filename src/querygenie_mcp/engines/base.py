"""Engine adapter contract.

Adapters wrap one external engine behind a narrow connect / execute /
introspect / close contract. They know their own SQL dialect (limit clause,
catalog queries, exploration query, error codes) but nothing about the
canonical schema model or the executor's safety policy, which are layered
on top.

Each call opens exactly one SQLAlchemy engine with ``NullPool`` so no
connection outlives the call that opened it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, ClassVar

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from querygenie_mcp.errors import DatabaseConnectionError, ExecutionError, ExecutionErrorKind
from querygenie_mcp.models import ConnectionConfig, Credentials, EngineKind
from querygenie_mcp.sqlglot_tools.models import Dialect
from querygenie_mcp.sqlglot_tools.service import map_engine_to_sqlglot

_logger = get_logger(__name__)


@dataclass(slots=True)
class EngineHandle:
    """An open connection plus the engine that owns it."""

    engine: Engine
    connection: Connection
    timeout_ms: int


@dataclass(slots=True)
class RawResult:
    """Unnormalized statement result as reported by the driver."""

    returns_rows: bool
    columns: list[str] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)
    rowcount: int = 0


@dataclass(slots=True)
class RawCatalog:
    """Catalog rows in a shared shape across engines.

    ``tables`` rows: ``table_schema``, ``table_name``.
    ``columns`` rows: ``table_schema``, ``table_name``, ``column_name``,
    ``data_type``, ``is_nullable`` (bool), ``is_primary`` (bool | None).
    ``constraints`` rows: ``table_schema``, ``table_name``, ``column_name``,
    ``constraint_type`` ("PRIMARY KEY" | "FOREIGN KEY"), ``foreign_table``,
    ``foreign_column``. ``None`` when the constraint query failed.
    """

    tables: list[dict[str, Any]]
    columns: list[dict[str, Any]]
    constraints: list[dict[str, Any]] | None = None
    schemas: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class EngineAdapter(ABC):
    """Base class for per-engine drivers."""

    kind: ClassVar[EngineKind]
    driver: ClassVar[str]

    @property
    def sqlglot_dialect(self) -> Dialect:
        """Dialect used when parsing statements bound for this engine."""
        return map_engine_to_sqlglot(self.kind)

    # ---- connection lifecycle ----------------------------------------------
    def build_url(self, config: ConnectionConfig, credentials: Credentials) -> sa.URL:
        """Build the SQLAlchemy URL, forcing this adapter's driver."""
        if credentials.connection_string:
            return sa.make_url(credentials.connection_string).set(drivername=self.driver)
        return sa.URL.create(
            self.driver,
            username=config.username,
            password=credentials.password,
            host=config.host,
            port=config.port,
            database=config.database,
        )

    def connect_args(self, config: ConnectionConfig, timeout_ms: int) -> dict[str, Any]:  # noqa: ARG002
        """Driver keyword arguments (timeouts, TLS)."""
        return {}

    def configure_engine(self, engine: Engine, timeout_ms: int) -> None:
        """Hook to attach driver-level listeners before the first connect."""

    def prepare_session(self, handle: EngineHandle) -> None:
        """Hook to apply session settings once the connection is open."""

    def connect(
        self, config: ConnectionConfig, credentials: Credentials, timeout_ms: int
    ) -> EngineHandle:
        """Open one connection.

        Raises:
            DatabaseConnectionError: With the engine-reported diagnostic
        """
        try:
            url = self.build_url(config, credentials)
            engine = sa.create_engine(
                url, poolclass=NullPool, connect_args=self.connect_args(config, timeout_ms)
            )
        except (SQLAlchemyError, ValueError, ImportError) as exc:
            # The URL may carry a password; only the error type is reported
            msg = f"{self.kind} connection settings are invalid ({type(exc).__name__})"
            raise DatabaseConnectionError(msg) from exc

        self.configure_engine(engine, timeout_ms)
        try:
            connection = engine.connect()
        except SQLAlchemyError as exc:
            engine.dispose()
            msg = f"{self.kind} connection failed: {_diagnostic(exc)}"
            raise DatabaseConnectionError(msg) from exc

        handle = EngineHandle(engine=engine, connection=connection, timeout_ms=timeout_ms)
        try:
            self.prepare_session(handle)
        except SQLAlchemyError as exc:
            self.close(handle)
            msg = f"{self.kind} session setup failed: {_diagnostic(exc)}"
            raise DatabaseConnectionError(msg) from exc
        _logger.debug("Opened %s connection to %s", self.kind, config.describe())
        return handle

    def close(self, handle: EngineHandle) -> None:
        """Release the connection and dispose of its engine."""
        try:
            handle.connection.close()
        except SQLAlchemyError as exc:
            _logger.warning("Error closing %s connection: %s", self.kind, exc)
        finally:
            handle.engine.dispose()

    @contextmanager
    def session(
        self, config: ConnectionConfig, credentials: Credentials, timeout_ms: int
    ) -> Iterator[EngineHandle]:
        """Scoped acquisition: the handle is closed on every exit path."""
        handle = self.connect(config, credentials, timeout_ms)
        try:
            yield handle
        finally:
            self.close(handle)

    # ---- statements --------------------------------------------------------
    def execute(self, handle: EngineHandle, sql: str, fetch_limit: int | None = None) -> RawResult:
        """Execute one statement within its own transaction.

        The session timeout applied at connect time bounds the statement.
        The SQL is passed to the driver verbatim (no bind-parameter parsing).

        Args:
            handle: Open handle from `connect`
            sql: A single statement
            fetch_limit: Maximum rows to fetch from a row-returning statement

        Raises:
            ExecutionError: Classified from the driver error
        """
        conn = handle.connection
        try:
            with conn.begin():
                result = conn.execution_options(no_parameters=True).exec_driver_sql(sql)
                if not result.returns_rows:
                    return RawResult(returns_rows=False, rowcount=max(result.rowcount, 0))
                columns = list(result.keys())
                fetched = result.fetchmany(fetch_limit) if fetch_limit else result.fetchall()
                result.close()
                rows = [tuple(row) for row in fetched]
                return RawResult(returns_rows=True, columns=columns, rows=rows, rowcount=len(rows))
        except SQLAlchemyError as exc:
            raise self.wrap_error(exc) from exc

    def wrap_error(self, exc: SQLAlchemyError) -> ExecutionError:
        kind = self.classify(exc)
        message = _diagnostic(exc)
        if kind == "Timeout":
            message = f"Query timeout exceeded: {message}"
        return ExecutionError(message, execution_kind=kind)

    @abstractmethod
    def classify(self, exc: SQLAlchemyError) -> ExecutionErrorKind:
        """Map an engine-native error to the stable execution taxonomy."""

    # ---- dialect -----------------------------------------------------------
    def limit_clause(self, limit: int) -> str:
        """Clause appended to bound a row-returning statement."""
        return f"LIMIT {int(limit)}"

    @abstractmethod
    def exploration_query(self, schema_name: str | None) -> str:
        """Read-only catalog query listing tables (and columns) for discovery."""

    # ---- catalog -----------------------------------------------------------
    @abstractmethod
    def table_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        """Rows describing user tables."""

    @abstractmethod
    def column_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        """Rows describing columns in ordinal order."""

    @abstractmethod
    def constraint_rows(self, handle: EngineHandle) -> list[dict[str, Any]]:
        """Rows describing primary and foreign key constraints."""

    def schema_names(self, handle: EngineHandle) -> list[str]:  # noqa: ARG002
        """User schema names, when the engine has namespaces."""
        return []

    def introspect_catalog(self, handle: EngineHandle) -> RawCatalog:
        """Run the catalog queries.

        Table and column failures propagate. A constraint failure is recorded
        as a warning and leaves ``constraints`` as ``None``.
        """
        try:
            tables = self.table_rows(handle)
            columns = self.column_rows(handle)
            schemas = self.schema_names(handle)
        except SQLAlchemyError as exc:
            raise self.wrap_error(exc) from exc

        catalog = RawCatalog(tables=tables, columns=columns, schemas=schemas)
        try:
            catalog.constraints = self.constraint_rows(handle)
        except SQLAlchemyError as exc:
            _logger.warning("Constraint query failed on %s; returning partial schema", self.kind)
            catalog.warnings.append(f"Constraint metadata unavailable: {_diagnostic(exc)}")
        return catalog

    def fetch_dicts(
        self, handle: EngineHandle, sql: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Run a catalog query and return rows as dicts."""
        result = handle.connection.execute(sa.text(sql), params or {})
        return [dict(row) for row in result.mappings()]


def native_error(exc: SQLAlchemyError) -> BaseException | None:
    """Return the DBAPI exception wrapped by SQLAlchemy, if any."""
    if isinstance(exc, DBAPIError):
        return exc.orig
    return None


def _diagnostic(exc: SQLAlchemyError) -> str:
    orig = native_error(exc)
    text = str(orig) if orig is not None else str(exc)
    return text.strip().splitlines()[0] if text.strip() else type(exc).__name__


def quote_literal(value: str) -> str:
    """Single-quote a string literal for catalog queries."""
    return "'" + value.replace("'", "''") + "'"
