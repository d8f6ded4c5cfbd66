"""Layered parsing of raw provider text into a `GenerationResponse`.

Most specific first: tagged exploration, tagged query, tagged clarification,
fenced code block, blank-line split, and finally the whole text as a
clarification. Parsing never raises.
"""

from __future__ import annotations

import re

from querygenie_mcp.generation.models import (
    ClarificationResponse,
    ExplorationResponse,
    GenerationResponse,
    QueryResponse,
)

FALLBACK_MESSAGE = "I couldn't produce a query for that. Could you describe the data you need?"
DEFAULT_EXPLANATION = "Query generated successfully"

_EXPLORATION_RE = re.compile(
    r"<exploration>\s*<message>(.*?)</message>\s*<query>(.*?)</query>\s*</exploration>",
    re.DOTALL | re.IGNORECASE,
)
_QUERY_RE = re.compile(r"<query>(.*?)</query>", re.DOTALL | re.IGNORECASE)
_EXPLANATION_RE = re.compile(r"<explanation>(.*?)</explanation>", re.DOTALL | re.IGNORECASE)
_CLARIFICATION_RE = re.compile(r"<clarification>(.*?)</clarification>", re.DOTALL | re.IGNORECASE)
_CODE_BLOCK_RE = re.compile(r"```(?:sql)?[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_ASKS_TO_RUN_RE = re.compile(
    r"would you like (me )?to execute|shall i (run|execute)|execute this query", re.IGNORECASE
)
_EXPLORATION_HINT_RE = re.compile(
    r"list.*tables|show.*tables|explore.*schema|available tables", re.IGNORECASE
)
_SQL_LEAD_RE = re.compile(
    r"^\s*(SELECT|WITH|SHOW|DESCRIBE|DESC|EXPLAIN|PRAGMA)\b", re.IGNORECASE
)
_BLANK_LINE_RE = re.compile(r"\n\s*\n")


def parse_ai_response(text: str, confidence: int) -> GenerationResponse:
    """Parse provider output; ``confidence`` is the provider's declared score."""
    body = (text or "").strip()
    if not body:
        return ClarificationResponse(message=FALLBACK_MESSAGE)

    match = _EXPLORATION_RE.search(body)
    if match and match.group(2).strip():
        return ExplorationResponse(
            exploration_query=match.group(2).strip(),
            message=match.group(1).strip(),
            requires_confirmation=True,
            confidence=confidence,
        )

    match = _QUERY_RE.search(body)
    if match and match.group(1).strip():
        explanation = _EXPLANATION_RE.search(body)
        return QueryResponse(
            query=match.group(1).strip(),
            explanation=explanation.group(1).strip() if explanation else DEFAULT_EXPLANATION,
            confidence=confidence,
        )

    match = _CLARIFICATION_RE.search(body)
    if match and match.group(1).strip():
        return ClarificationResponse(message=match.group(1).strip())

    match = _CODE_BLOCK_RE.search(body)
    if match and match.group(1).strip():
        query = match.group(1).strip()
        explanation = _CODE_BLOCK_RE.sub("", body, count=1).strip()
        if _ASKS_TO_RUN_RE.search(body) and _EXPLORATION_HINT_RE.search(body):
            return ExplorationResponse(
                exploration_query=query,
                message=explanation or "Run this query to explore the schema.",
                requires_confirmation=True,
                confidence=confidence,
            )
        return QueryResponse(
            query=query, explanation=explanation or DEFAULT_EXPLANATION, confidence=confidence
        )

    blocks = _BLANK_LINE_RE.split(body, maxsplit=1)
    if _SQL_LEAD_RE.match(blocks[0]):
        rest = blocks[1].strip() if len(blocks) > 1 else ""
        return QueryResponse(
            query=blocks[0].strip(), explanation=rest or DEFAULT_EXPLANATION, confidence=confidence
        )

    return ClarificationResponse(message=body)
