"""Conversation turns and the closed generation response union."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from querygenie_mcp.errors import ErrorKind
from querygenie_mcp.models import EngineKind
from querygenie_mcp.schema_tools.models import TableInfo

ProviderChoice = Literal["gemini", "claude", "gpt4"]


class TurnMetadata(BaseModel):
    """Structured facts about a turn."""

    engine: EngineKind | None = Field(default=None, description="Engine the turn targeted")
    is_exploration: bool = Field(default=False, description="Whether the turn was an exploration")


class ConversationTurn(BaseModel):
    """One message in the recent conversation window."""

    role: Literal["user", "assistant"] = Field(description="Author of the turn")
    content: str = Field(description="Message text")
    sql: str | None = Field(default=None, description="SQL attached to the turn")
    confidence: int | None = Field(default=None, ge=0, le=100, description="Confidence 0-100")
    metadata: TurnMetadata | None = Field(default=None, description="Optional structured metadata")


class QueryResponse(BaseModel):
    """Final SQL ready for the caller to execute."""

    type: Literal["query"] = "query"
    query: str = Field(description="Generated SQL")
    explanation: str = Field(description="What the query does")
    confidence: int = Field(ge=0, le=100, description="Provider-declared confidence")
    suggestions: list[TableInfo] = Field(
        default_factory=list, description="Alternative tables the user may have meant"
    )
    message: str | None = Field(default=None, description="Extra note shown with the query")


class ExplorationResponse(BaseModel):
    """A read-only catalog query to run before answering."""

    type: Literal["exploration"] = "exploration"
    exploration_query: str = Field(description="Read-only catalog query")
    message: str = Field(description="Why the exploration is needed")
    requires_confirmation: bool = Field(default=True, description="Ask before running")
    confidence: int = Field(default=100, ge=0, le=100, description="Confidence 0-100")
    suggestions: list[TableInfo] = Field(default_factory=list, description="Candidate tables")


class ClarificationResponse(BaseModel):
    """A question back to the user."""

    type: Literal["clarification"] = "clarification"
    message: str = Field(description="The question to ask")
    suggestions: list[TableInfo] = Field(default_factory=list, description="Candidate tables")


class ErrorResponse(BaseModel):
    """Generation failed.

    ``ProviderConfigurationError`` means "configure a key"; ``ProviderError``
    means "try again".
    """

    type: Literal["error"] = "error"
    kind: ErrorKind = Field(description="Stable error kind")
    message: str = Field(description="Human-readable message")
    timed_out: bool = Field(
        default=False, description="The provider call ran past its timeout; safe to retry"
    )


GenerationResponse = Annotated[
    QueryResponse | ExplorationResponse | ClarificationResponse | ErrorResponse,
    Field(discriminator="type"),
]
