"""Helpers for the bounded conversation window."""

from __future__ import annotations

from collections.abc import Sequence

from querygenie_mcp.execute.models import ExecutionResult
from querygenie_mcp.generation.models import ConversationTurn, ExplorationResponse, TurnMetadata
from querygenie_mcp.models import EngineKind

DEFAULT_WINDOW = 5
MAX_SUMMARY_ROWS = 20


def recent_window(
    history: Sequence[ConversationTurn], size: int = DEFAULT_WINDOW
) -> list[ConversationTurn]:
    """Return the last ``size`` turns, oldest first."""
    if size <= 0:
        return []
    return list(history[-size:])


def summarize_result(result: ExecutionResult, max_rows: int = MAX_SUMMARY_ROWS) -> str:
    """Compact text rendering of an execution result for the next prompt."""
    if not result.success:
        kind = result.error.kind if result.error else "Unclassified"
        message = result.error.message if result.error else "unknown error"
        return f"The query failed ({kind}): {message}"
    if result.rows is None:
        return f"The statement affected {result.row_count} rows."
    if not result.rows:
        return "The query returned no rows."

    lines = [f"The query returned {result.row_count} rows:", " | ".join(result.columns)]
    for row in result.rows[:max_rows]:
        lines.append(" | ".join("NULL" if v is None else str(v) for v in row))
    if result.row_count > max_rows:
        lines.append(f"... {result.row_count - max_rows} more rows")
    return "\n".join(lines)


def exploration_turn(
    response: ExplorationResponse, result: ExecutionResult, engine: EngineKind | None = None
) -> ConversationTurn:
    """Turn an executed exploration into an assistant turn for the next call."""
    return ConversationTurn(
        role="assistant",
        content=f"{response.message}\n\n{summarize_result(result)}",
        sql=response.exploration_query,
        confidence=response.confidence,
        metadata=TurnMetadata(engine=engine, is_exploration=True),
    )
