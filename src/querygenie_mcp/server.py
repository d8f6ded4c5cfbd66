"""FastMCP server implementation for querygenie-mcp."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import dotenv
from fastmcp import FastMCP
from fastmcp.utilities.logging import get_logger
from starlette.requests import Request
from starlette.responses import JSONResponse

from querygenie_mcp.engines.registry import supported_engines
from querygenie_mcp.errors import ConfigurationError
from querygenie_mcp.execute.mcp_tools import register_execute_query_tool
from querygenie_mcp.generation.mcp_tools import register_generation_tools
from querygenie_mcp.schema_tools.mcp_tools import register_schema_tools
from querygenie_mcp.services.core import CoreServices

# Load environment variables
dotenv.load_dotenv()

# Configure a module-level logger for local server logs.
_logger = get_logger(__name__)


# -- Context Manager for core service initialization --------------------
@asynccontextmanager
async def lifespan(_mcp_instance: FastMCP) -> AsyncGenerator[None]:
    """Derive the vault key once at startup so no request pays for it."""
    try:
        CoreServices.get_instance()
    except ConfigurationError:
        # Tools report the missing secret on each call until it is set
        _logger.exception("Core services unavailable")
    try:
        yield
    finally:
        _logger.info("Shutting down core services")
        CoreServices.reset_instance()


# Create the main MCP server instance with lifespan
mcp = FastMCP(
    instructions=(
        "Executes single SQL statements against external databases with encrypted "
        "credentials, and turns natural-language requests into SQL by exploring the "
        "live schema. generate_sql may return an exploration query; run it with "
        "execute_query and call generate_sql again with the result in history."
    ),
    lifespan=lifespan,
)

# -- Tool Registration -------------------------------------------------------
register_execute_query_tool(mcp)
register_schema_tools(mcp)
register_generation_tools(mcp)


# -- Health Check ----------------------------------------------------------
@mcp.custom_route("/health", methods=["GET"])
async def health_check(_request: Request) -> JSONResponse:
    return JSONResponse(
        {"status": "healthy", "service": "querygenie-mcp", "engines": supported_engines()}
    )
