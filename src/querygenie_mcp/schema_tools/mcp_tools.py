"""MCP tool registration for schema introspection and table matching."""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from querygenie_mcp.errors import QueryGenieError
from querygenie_mcp.models import ConnectionConfig
from querygenie_mcp.schema_tools.matching import find_matches
from querygenie_mcp.schema_tools.models import CanonicalSchema, TableInfo
from querygenie_mcp.services.core import CoreServices

_logger = get_logger(__name__)


def register_schema_tools(mcp: FastMCP, services: CoreServices | None = None) -> None:
    """Register introspect_schema and find_tables."""

    async def _introspect(ctx: Context, connection: ConnectionConfig) -> CanonicalSchema:
        try:
            core = services or CoreServices.get_instance()
            return await asyncio.to_thread(core.introspector.introspect, connection)
        except QueryGenieError as exc:
            await ctx.error(f"Introspection failed ({exc.error_kind}): {exc}")
            raise

    @mcp.tool
    async def introspect_schema(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        connection: Annotated[
            ConnectionConfig,
            Field(description="Resolved connection record with encrypted secrets"),
        ],
    ) -> CanonicalSchema:
        """Read the live schema: tables, ordered columns, and primary/foreign keys.

        When ``complete`` is false some key metadata was unavailable; see ``warnings``.
        """
        _logger.info("introspect_schema: %s", connection.describe())
        return await _introspect(ctx, connection)

    @mcp.tool
    async def find_tables(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        connection: Annotated[
            ConnectionConfig,
            Field(description="Resolved connection record with encrypted secrets"),
        ],
        terms: Annotated[
            list[str],
            Field(min_length=1, description="Entity or table-name terms to search for"),
        ],
        limit: Annotated[int, Field(ge=1, le=50, description="Maximum tables to return")] = 10,
    ) -> list[TableInfo]:
        """Rank tables by name and column relevance to the given terms."""
        _logger.info("find_tables: %s terms=%s", connection.describe(), terms[:10])
        schema = await _introspect(ctx, connection)
        return find_matches(schema, terms)[:limit]

    _ = (introspect_schema, find_tables)
