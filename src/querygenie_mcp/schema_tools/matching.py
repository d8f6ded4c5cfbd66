"""Deterministic relevance scoring of tables against search terms.

Pure functions: identical inputs always produce identically ordered output.
"""

from __future__ import annotations

from collections.abc import Sequence

from querygenie_mcp.schema_tools.constants import Constants
from querygenie_mcp.schema_tools.models import CanonicalSchema, TableInfo


def score_table(table: TableInfo, terms: Sequence[str]) -> int:
    """Score one table.

    Per term: exact name match, else substring containment, else every
    ``_``/``-`` segment of the term is a segment of the name (so
    ``order-items`` finds ``order_items``); each column whose name contains
    the term adds a small bonus. Comparison is case-insensitive.
    """
    name = table.name.lower()
    segments = Constants.SEGMENT_SPLIT_PATTERN.split(name)
    score = 0
    for raw in terms:
        term = raw.lower()
        if not term:
            continue
        if name == term:
            score += Constants.EXACT_NAME_SCORE
        elif term in name:
            score += Constants.CONTAINS_NAME_SCORE
        else:
            parts = [p for p in Constants.SEGMENT_SPLIT_PATTERN.split(term) if p]
            if parts and all(p in segments for p in parts):
                score += Constants.SEGMENT_NAME_SCORE
        for column in table.columns:
            if term in column.name.lower():
                score += Constants.COLUMN_MATCH_SCORE
    return score


def find_matches(schema: CanonicalSchema, terms: Sequence[str]) -> list[TableInfo]:
    """Rank tables by relevance, dropping tables that score zero.

    Ties break on case-insensitive table name, then schema name.
    """
    scored = [(score_table(table, terms), table) for table in schema.tables]
    ranked = sorted(
        ((score, table) for score, table in scored if score > 0),
        key=lambda item: (-item[0], item[1].name.lower(), (item[1].schema_name or "").lower()),
    )
    return [table for _, table in ranked]


def split_terms(terms: Sequence[str]) -> list[str]:
    """Split terms on ``_`` and ``-`` for a looser second matching pass."""
    out: list[str] = []
    for term in terms:
        out.extend(part for part in Constants.SEGMENT_SPLIT_PATTERN.split(term) if part)
    return out


def describe_matches(tables: Sequence[TableInfo]) -> str:
    """Human-readable summary of candidate tables for the user to pick from."""
    if not tables:
        return "I couldn't find any tables matching your description."
    if len(tables) == 1:
        return f"I found the table: **{tables[0].qualified_name}**"

    limit = Constants.SUGGESTION_TABLES
    lines = ["I found multiple tables that might match what you're looking for:", ""]
    for i, table in enumerate(tables[:limit], start=1):
        names = [c.name for c in table.columns[: Constants.SUGGESTION_COLUMNS]]
        more = ", ..." if len(table.columns) > Constants.SUGGESTION_COLUMNS else ""
        lines.append(f"{i}. **{table.qualified_name}**")
        lines.append(f"   Columns: {', '.join(names)}{more}")
        lines.append("")
    if len(tables) > limit:
        lines.append(f"...and {len(tables) - limit} more tables.")
        lines.append("")
    lines.append("Which table would you like to query?")
    return "\n".join(lines)
