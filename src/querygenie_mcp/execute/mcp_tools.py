"""MCP tool registration for direct SQL execution (execute_query).

Provides a single tool that runs one statement against a resolved connection
through the safety-checked executor and returns a typed result payload.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from querygenie_mcp.errors import ConfigurationError
from querygenie_mcp.execute.models import ExecutionRequest, ExecutionResult
from querygenie_mcp.models import ConnectionConfig
from querygenie_mcp.schema_tools.constants import Constants
from querygenie_mcp.services.config_service import ConfigService
from querygenie_mcp.services.core import CoreServices

_logger = get_logger(__name__)


def register_execute_query_tool(mcp: FastMCP, services: CoreServices | None = None) -> None:
    """Register the execute_query tool.

    Failures are returned in the payload with a stable ``error.kind`` rather
    than raised, so callers can branch on them.
    """

    @mcp.tool
    async def execute_query(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        connection: Annotated[
            ConnectionConfig,
            Field(description="Resolved connection record with encrypted secrets"),
        ],
        sql: Annotated[
            str,
            Field(
                description=(
                    "Exactly one SQL statement. Read-only connections reject write statements; "
                    "unbounded SELECTs receive a row limit."
                )
            ),
        ],
        limit: Annotated[
            int | None,
            Field(ge=1, description="Row limit override; server default when omitted"),
        ] = None,
        exploration: Annotated[  # noqa: FBT002
            bool,
            Field(
                description=(
                    "Set when running an exploration query returned by generate_sql; applies "
                    "the smaller exploration row limit and timeout."
                )
            ),
        ] = False,
    ) -> ExecutionResult:
        """Execute one statement and return columns, rows, and a classified error on failure."""

        preview = sql[: Constants.MAX_QUERY_DISPLAY] + (
            "..." if len(sql) > Constants.MAX_QUERY_DISPLAY else ""
        )
        _logger.info("execute_query: %s", preview)
        try:
            core = services or CoreServices.get_instance()
        except ConfigurationError as exc:
            await ctx.error(f"Core services not ready: {exc}")
            raise

        request = ExecutionRequest(
            connection=connection,
            sql=sql,
            limit=limit or (ConfigService.exploration_row_limit() if exploration else None),
            timeout_ms=ConfigService.exploration_timeout_ms() if exploration else None,
        )
        return await asyncio.to_thread(core.executor.execute, request)

    _ = execute_query
