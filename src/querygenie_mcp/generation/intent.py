"""Prompt intent analysis.

Classifies a natural-language prompt and extracts candidate table search
terms plus an optional schema name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re

from querygenie_mcp.schema_tools.constants import Constants

_QUESTION_RE = re.compile(
    r"^(what|how|where|when|why|which|show|list|get|find|i need|i want|can you|could you|please)",
    re.IGNORECASE,
)
_REQUEST_RE = re.compile(
    r"\b(select|query|sql|fetch|retrieve|show me|get me|give me|list|need|want|looking for"
    r"|available|tables|check|examine)\b",
    re.IGNORECASE,
)
_CONFIRM_RE = re.compile(
    r"\b(yes|okay|sure|proceed|go ahead|do it|execute|run)\b", re.IGNORECASE
)
_CATALOG_NOUN_RE = re.compile(r"\b(tables|schemas|databases|columns)\b|\bschema\b", re.IGNORECASE)
_DISCOVERY_CUE_RE = re.compile(
    r"\b(what|which|list|show|available|explore|discover|describe|exist)\b", re.IGNORECASE
)


@dataclass(slots=True)
class Intent:
    """Result of analyzing one prompt."""

    is_question: bool
    wants_query: bool
    asks_about_schema: bool
    search_terms: list[str] = field(default_factory=list)
    schema_name: str | None = None


def extract_search_terms(prompt: str) -> list[str]:
    """Entity vocabulary hits followed by identifier-shaped tokens.

    Order is preserved and duplicates are dropped.
    """
    lowered = prompt.lower()
    terms = [entity for entity in Constants.ENTITY_VOCABULARY if entity in lowered]
    for word in Constants.IDENTIFIER_PATTERN.findall(prompt):
        if len(word) > 2 and word.lower() not in Constants.TERM_STOPWORDS:
            terms.append(word)
    return list(dict.fromkeys(terms))


def extract_schema_name(prompt: str) -> str | None:
    """Find a schema name mentioned in the prompt ("in the billing schema")."""
    for pattern in Constants.SCHEMA_NAME_PATTERNS:
        for match in pattern.finditer(prompt):
            candidate = match.group(1)
            if candidate.lower() not in Constants.SCHEMA_NAME_STOPWORDS:
                return candidate
    return None


def is_schema_discovery(prompt: str) -> bool:
    """True when the prompt asks what exists rather than for data."""
    return bool(_CATALOG_NOUN_RE.search(prompt) and _DISCOVERY_CUE_RE.search(prompt))


def analyze_intent(prompt: str) -> Intent:
    text = prompt.strip()
    is_question = bool(_QUESTION_RE.match(text))
    wants_query = is_question or bool(_REQUEST_RE.search(text) or _CONFIRM_RE.search(text))
    return Intent(
        is_question=is_question,
        wants_query=wants_query,
        asks_about_schema=is_schema_discovery(text),
        search_terms=extract_search_terms(text),
        schema_name=extract_schema_name(text),
    )
