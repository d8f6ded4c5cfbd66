"""Constants shared by schema matching and intent analysis.

Vocabulary, stopword sets and regex patterns used when turning a
natural-language prompt into table search terms.
"""

from __future__ import annotations

import re
from typing import Final


class Constants:
    """Configuration constants for matching and intent analysis."""

    # Logging previews
    MAX_QUERY_DISPLAY: Final[int] = 100

    # Relevance scores
    EXACT_NAME_SCORE: Final[int] = 100
    CONTAINS_NAME_SCORE: Final[int] = 50
    SEGMENT_NAME_SCORE: Final[int] = 30
    COLUMN_MATCH_SCORE: Final[int] = 10

    # Context budgets
    PROMPT_TABLES: Final[int] = 3
    PROMPT_COLUMNS: Final[int] = 10
    SUGGESTION_TABLES: Final[int] = 5
    SUGGESTION_COLUMNS: Final[int] = 5
    EXPLORATION_CONFIDENCE: Final[int] = 100

    # Domain entities commonly found as table names
    ENTITY_VOCABULARY: Final[tuple[str, ...]] = (
        "user",
        "users",
        "role",
        "roles",
        "permission",
        "permissions",
        "product",
        "products",
        "order",
        "orders",
        "customer",
        "customers",
        "employee",
        "employees",
        "department",
        "departments",
        "account",
        "accounts",
        "transaction",
        "transactions",
        "auth",
        "authentication",
        "session",
        "sessions",
    )

    # Identifier-shaped tokens dropped from search terms
    TERM_STOPWORDS: Final[frozenset[str]] = frozenset({"the", "and", "from", "where", "select"})

    # Words that can sit next to "schema" without naming one
    SCHEMA_NAME_STOPWORDS: Final[frozenset[str]] = frozenset(
        {
            "the",
            "a",
            "an",
            "this",
            "that",
            "my",
            "our",
            "which",
            "what",
            "each",
            "every",
            "any",
            "all",
            "database",
            "db",
            "schema",
        }
    )

    # Regex patterns
    IDENTIFIER_PATTERN: Final[re.Pattern[str]] = re.compile(r"\b[a-zA-Z_][a-zA-Z0-9_]*\b")
    SEGMENT_SPLIT_PATTERN: Final[re.Pattern[str]] = re.compile(r"[_\-]")
    SCHEMA_NAME_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
        re.compile(r"from\s+(\w+)\s+schema", re.IGNORECASE),
        re.compile(r"in\s+(\w+)\s+schema", re.IGNORECASE),
        re.compile(r"(\w+)\s+schema", re.IGNORECASE),
        re.compile(r"schema\s+['\"]*(\w+)['\"]*,?", re.IGNORECASE),
        re.compile(r"from\s+['\"]*(\w+)['\"]*\.", re.IGNORECASE),
    )
