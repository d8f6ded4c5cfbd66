"""Conversational SQL generation over a live, unknown schema.

One `generate` call runs a small state machine:
- Intent analysis of the prompt
- Schema acquisition (caller-supplied, else live introspection)
- Relevance matching, with a looser second pass over split terms
- Branching into deterministic exploration or a model call

Nothing is persisted between calls except the caller-supplied history.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import assert_never

from fastmcp.utilities.logging import get_logger

from querygenie_mcp.engines.base import EngineAdapter
from querygenie_mcp.engines.registry import get_adapter
from querygenie_mcp.errors import ProviderConfigurationError, ProviderError, QueryGenieError
from querygenie_mcp.execute.models import ExecutionResult
from querygenie_mcp.generation.history import DEFAULT_WINDOW, exploration_turn, recent_window
from querygenie_mcp.generation.intent import Intent, analyze_intent
from querygenie_mcp.generation.models import (
    ClarificationResponse,
    ConversationTurn,
    ErrorResponse,
    ExplorationResponse,
    GenerationResponse,
    ProviderChoice,
    QueryResponse,
)
from querygenie_mcp.generation.parsing import parse_ai_response
from querygenie_mcp.generation.prompts import build_system_prompt, exploration_message
from querygenie_mcp.generation.providers import ProviderClient, get_provider_spec
from querygenie_mcp.models import ConnectionConfig
from querygenie_mcp.schema_tools.constants import Constants
from querygenie_mcp.schema_tools.introspection import SchemaIntrospector
from querygenie_mcp.schema_tools.matching import describe_matches, find_matches, split_terms
from querygenie_mcp.schema_tools.models import CanonicalSchema, TableInfo

_logger = get_logger(__name__)

MULTI_MATCH_NOTE = "I've generated a query using the most likely table:"
BROADEN_MESSAGE = (
    "The filtered exploration found nothing, so I'll list all available tables instead."
)


class GenerationEngine:
    """Turns natural-language prompts into SQL, exploration, or clarification."""

    def __init__(
        self,
        providers: ProviderClient,
        introspector: SchemaIntrospector | None = None,
        *,
        adapters: Callable[[str], EngineAdapter] = get_adapter,
        history_window: int = DEFAULT_WINDOW,
    ) -> None:
        self._providers = providers
        self._introspector = introspector
        self._adapters = adapters
        self._history_window = history_window

    # ---- public API -------------------------------------------------------
    def generate(
        self,
        prompt: str,
        connection: ConnectionConfig,
        history: Sequence[ConversationTurn] = (),
        provider: ProviderChoice = "gemini",
        *,
        api_key: str | None = None,
        schema: CanonicalSchema | None = None,
    ) -> GenerationResponse:
        """Run one generation turn. Never raises for expected failures.

        Schema-discovery prompts, and prompts with no usable schema or no
        matching table, get a deterministic exploration. Alternatives are
        suggested only when the prompt reads as a data request.
        """
        return self._run(
            prompt, connection, history, provider, api_key=api_key, schema=schema, explore=True
        )

    def continue_exploration(
        self,
        prompt: str,
        connection: ConnectionConfig,
        exploration: ExplorationResponse,
        result: ExecutionResult,
        history: Sequence[ConversationTurn] = (),
        provider: ProviderChoice = "gemini",
        *,
        api_key: str | None = None,
        schema: CanonicalSchema | None = None,
    ) -> GenerationResponse:
        """Next turn after the caller ran ``exploration`` and got ``result``.

        A schema-filtered exploration that found nothing is broadened once.
        Otherwise the result becomes an assistant turn and the model answers
        with it in context, without exploring again.
        """
        try:
            adapter = self._adapters(connection.engine)
        except QueryGenieError as exc:
            return ErrorResponse(kind=exc.error_kind, message=str(exc))

        if exploration.exploration_query != adapter.exploration_query(None):
            broadened = self.broaden_exploration(prompt, connection, result)
            if broadened is not None:
                return broadened

        turns = [*history, exploration_turn(exploration, result, connection.engine)]
        return self._run(
            prompt, connection, turns, provider, api_key=api_key, schema=schema, explore=False
        )

    def exploration(
        self,
        prompt: str,
        connection: ConnectionConfig,
        adapter: EngineAdapter | None = None,
        intent: Intent | None = None,
    ) -> ExplorationResponse:
        """Deterministic, engine-specific exploration; no model call."""
        adapter = adapter or self._adapters(connection.engine)
        intent = intent or analyze_intent(prompt)
        return ExplorationResponse(
            exploration_query=adapter.exploration_query(intent.schema_name),
            message=exploration_message(prompt, connection.engine, intent.schema_name),
            requires_confirmation=True,
            confidence=Constants.EXPLORATION_CONFIDENCE,
        )

    def broaden_exploration(
        self, prompt: str, connection: ConnectionConfig, result: ExecutionResult
    ) -> ExplorationResponse | None:
        """Unfiltered exploration after a filtered one came back empty.

        Returns ``None`` when ``result`` does not call for broadening, i.e.
        it neither failed with ``NoSuchTable`` nor returned zero rows.
        """
        missing_table = result.error is not None and result.error.kind == "NoSuchTable"
        empty = result.success and result.rows is not None and not result.rows
        if not (missing_table or empty):
            return None
        adapter = self._adapters(connection.engine)
        _logger.info("Broadening exploration for %s after empty result", connection.engine)
        return ExplorationResponse(
            exploration_query=adapter.exploration_query(None),
            message=BROADEN_MESSAGE,
            requires_confirmation=True,
            confidence=Constants.EXPLORATION_CONFIDENCE,
        )

    # ---- internal ---------------------------------------------------------
    def _run(
        self,
        prompt: str,
        connection: ConnectionConfig,
        history: Sequence[ConversationTurn],
        provider: ProviderChoice,
        *,
        api_key: str | None,
        schema: CanonicalSchema | None,
        explore: bool,
    ) -> GenerationResponse:
        intent = analyze_intent(prompt)
        _logger.info(
            "generate: engine=%s provider=%s terms=%s schema_name=%s wants_query=%s",
            connection.engine,
            provider,
            intent.search_terms[:10],
            intent.schema_name,
            intent.wants_query,
        )
        try:
            adapter = self._adapters(connection.engine)
        except QueryGenieError as exc:
            return ErrorResponse(kind=exc.error_kind, message=str(exc))

        if schema is None:
            schema = self._acquire_schema(connection)
        matches = self._match(schema, intent)

        if explore and _needs_exploration(intent, schema, matches):
            return self.exploration(prompt, connection, adapter, intent)

        window = recent_window(history, self._history_window)
        if intent.wants_query and len(matches) > 1:
            response = self._call_model(
                prompt, connection, provider, api_key, matches[: Constants.PROMPT_TABLES], window
            )
            return _with_suggestions(response, matches)
        return self._call_model(prompt, connection, provider, api_key, matches[:1], window)

    def _acquire_schema(self, connection: ConnectionConfig) -> CanonicalSchema | None:
        if self._introspector is None:
            return None
        try:
            return self._introspector.introspect(connection)
        except QueryGenieError as exc:
            _logger.warning("Schema unavailable, continuing without it: %s", exc)
            return None

    @staticmethod
    def _match(schema: CanonicalSchema | None, intent: Intent) -> list[TableInfo]:
        if schema is None or not intent.search_terms:
            return []
        matches = find_matches(schema, intent.search_terms)
        if not matches:
            matches = find_matches(schema, split_terms(intent.search_terms))
        return matches

    def _call_model(
        self,
        prompt: str,
        connection: ConnectionConfig,
        provider: ProviderChoice,
        api_key: str | None,
        tables: Sequence[TableInfo],
        history: Sequence[ConversationTurn],
    ) -> GenerationResponse:
        try:
            spec = get_provider_spec(provider)
            system_prompt = build_system_prompt(connection.engine, tables, history)
            text = self._providers.complete(spec, api_key, system_prompt, f"User: {prompt}")
        except ProviderConfigurationError as exc:
            _logger.warning("Provider not configured: %s", exc)
            return ErrorResponse(kind=exc.error_kind, message=str(exc))
        except ProviderError as exc:
            _logger.warning("Provider call failed (timed_out=%s): %s", exc.timed_out, exc)
            return ErrorResponse(kind=exc.error_kind, message=str(exc), timed_out=exc.timed_out)
        return parse_ai_response(text, spec.confidence)


def _needs_exploration(
    intent: Intent, schema: CanonicalSchema | None, matches: Sequence[TableInfo]
) -> bool:
    """True for schema discovery, or when no table can serve as context."""
    return intent.asks_about_schema or schema is None or schema.is_empty or not matches


def _with_suggestions(response: GenerationResponse, matches: Sequence[TableInfo]) -> GenerationResponse:
    """Attach the top matches so the caller can offer alternatives."""
    suggestions = list(matches[: Constants.SUGGESTION_TABLES])
    match response:
        case QueryResponse():
            message = f"{describe_matches(matches)}\n\n{MULTI_MATCH_NOTE}"
            return response.model_copy(update={"suggestions": suggestions, "message": message})
        case ExplorationResponse() | ClarificationResponse():
            return response.model_copy(update={"suggestions": suggestions})
        case ErrorResponse():
            return response
        case _:
            assert_never(response)
