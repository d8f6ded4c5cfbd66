"""MCP tool registration for natural-language SQL generation (generate_sql)."""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from querygenie_mcp.errors import ConfigurationError, DecryptionError
from querygenie_mcp.execute.models import ExecutionResult
from querygenie_mcp.generation.models import (
    ConversationTurn,
    ErrorResponse,
    ExplorationResponse,
    GenerationResponse,
    ProviderChoice,
)
from querygenie_mcp.models import ConnectionConfig
from querygenie_mcp.schema_tools.constants import Constants
from querygenie_mcp.services.config_service import ConfigService
from querygenie_mcp.services.core import CoreServices

_logger = get_logger(__name__)


def register_generation_tools(mcp: FastMCP, services: CoreServices | None = None) -> None:
    """Register the generate_sql tool."""

    @mcp.tool
    async def generate_sql(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        prompt: Annotated[str, Field(description="The user's natural-language request")],
        connection: Annotated[
            ConnectionConfig,
            Field(description="Resolved connection record with encrypted secrets"),
        ],
        history: Annotated[
            list[ConversationTurn] | None,
            Field(description="Recent conversation turns, oldest first"),
        ] = None,
        provider: Annotated[
            ProviderChoice, Field(description="Language-model provider to use")
        ] = "gemini",
        encrypted_api_key: Annotated[
            str | None,
            Field(
                description=(
                    "Vault ciphertext of the caller's provider key; the server-configured key "
                    "is used when omitted"
                )
            ),
        ] = None,
        exploration: Annotated[
            ExplorationResponse | None,
            Field(description="The exploration response the caller just ran, if any"),
        ] = None,
        exploration_result: Annotated[
            ExecutionResult | None,
            Field(description="What execute_query returned for that exploration"),
        ] = None,
    ) -> GenerationResponse:
        """Turn a request into SQL, an exploration query to run first, or a clarifying question.

        Switch on ``type``. For ``exploration``, run ``exploration_query`` with execute_query
        (exploration=true) once the user confirms, then call again passing ``exploration``
        and ``exploration_result``; an empty filtered exploration is broadened once.
        """
        preview = prompt[: Constants.MAX_QUERY_DISPLAY] + (
            "..." if len(prompt) > Constants.MAX_QUERY_DISPLAY else ""
        )
        _logger.info("generate_sql (%s): %s", provider, preview)
        try:
            core = services or CoreServices.get_instance()
        except ConfigurationError as exc:
            await ctx.error(f"Core services not ready: {exc}")
            raise

        if encrypted_api_key:
            try:
                api_key = core.vault.decrypt(encrypted_api_key)
            except DecryptionError as exc:
                return ErrorResponse(kind="ProviderConfigurationError", message=str(exc))
        else:
            api_key = ConfigService.provider_api_key(provider)

        if exploration is not None and exploration_result is not None:
            return await asyncio.to_thread(
                core.generator.continue_exploration,
                prompt,
                connection,
                exploration,
                exploration_result,
                history or [],
                provider,
                api_key=api_key,
            )
        return await asyncio.to_thread(
            core.generator.generate,
            prompt,
            connection,
            history or [],
            provider,
            api_key=api_key,
        )

    _ = generate_sql
