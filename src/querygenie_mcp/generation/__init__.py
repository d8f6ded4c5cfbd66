"""Conversational natural-language to SQL generation.

Exports the engine, the response union and the parsing entry point. The
FastMCP registration helper lives in `querygenie_mcp.generation.mcp_tools`.
"""

from __future__ import annotations

from .engine import GenerationEngine
from .models import (
    ClarificationResponse,
    ConversationTurn,
    ErrorResponse,
    ExplorationResponse,
    GenerationResponse,
    ProviderChoice,
    QueryResponse,
    TurnMetadata,
)
from .parsing import parse_ai_response
from .providers import ProviderClient, ProviderSettings

__all__ = [
    "ClarificationResponse",
    "ConversationTurn",
    "ErrorResponse",
    "ExplorationResponse",
    "GenerationEngine",
    "GenerationResponse",
    "ProviderChoice",
    "ProviderClient",
    "ProviderSettings",
    "QueryResponse",
    "TurnMetadata",
    "parse_ai_response",
]
