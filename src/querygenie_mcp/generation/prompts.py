"""Prompt text for the language-model provider and exploration rationales."""

from __future__ import annotations

from collections.abc import Sequence
import re

from querygenie_mcp.generation.models import ConversationTurn
from querygenie_mcp.models import EngineKind
from querygenie_mcp.schema_tools.constants import Constants
from querygenie_mcp.schema_tools.models import TableInfo

ENGINE_LABELS: dict[str, str] = {
    "postgres": "PostgreSQL",
    "mysql": "MySQL",
    "sqlite": "SQLite",
    "mssql": "SQL Server",
}

_ROLE_HINT_RE = re.compile(r"role|permission|auth|user.*role", re.IGNORECASE)
_USER_HINT_RE = re.compile(r"user|account|member|person", re.IGNORECASE)

RESPONSE_FORMAT = """RESPONSE FORMAT:
When you need to explore the schema, respond with:
<exploration>
<message>Explanation of what you're looking for</message>
<query>The SQL query to explore the schema</query>
</exploration>

When you have enough information to generate the final query:
<query>
The SQL query
</query>
<explanation>
Brief explanation
</explanation>

When you need clarification:
<clarification>
Your question or clarification request
</clarification>
"""

INSTRUCTIONS = """IMPORTANT INSTRUCTIONS:
1. If the user asks about tables or data but no schema information is listed above,
   answer with an exploration query using the <exploration> format.
2. Use the ACTUAL table and column names from the schema when available.
3. Qualify tables with their schema name when one is shown (e.g. schema.table).
4. Always add a LIMIT clause for safety.
5. If several tables could match, ask for clarification.
"""


def describe_table(table: TableInfo, max_columns: int = Constants.PROMPT_COLUMNS) -> str:
    """Render one table as prompt context."""
    lines = [f"Table: {table.qualified_name}", "Columns:"]
    for col in table.columns[:max_columns]:
        line = f"  - {col.name} ({col.type})"
        if col.is_primary:
            line += " [PRIMARY KEY]"
        if col.is_foreign and col.references is not None:
            line += f" [FOREIGN KEY -> {col.references.table}]"
        lines.append(line)
    if len(table.columns) > max_columns:
        lines.append(f"  ... and {len(table.columns) - max_columns} more columns")
    return "\n".join(lines)


def build_system_prompt(
    engine: EngineKind,
    tables: Sequence[TableInfo],
    history: Sequence[ConversationTurn],
) -> str:
    """System prompt with capabilities, response contract, schema context and history."""
    label = ENGINE_LABELS.get(engine, engine)
    parts = [
        f"You are a helpful SQL assistant for a {label} database.",
        "",
        "CAPABILITIES:",
        "- You can explore the database schema by suggesting catalog queries.",
        "- When you need schema information first, provide an exploration query.",
        "- You can ONLY suggest READ queries (SELECT, SHOW, DESCRIBE, etc.).",
        "- NEVER suggest write operations (INSERT, UPDATE, DELETE, DROP, etc.).",
        "",
        RESPONSE_FORMAT,
    ]
    if tables:
        parts.append("Based on the user's request, here are the relevant tables in the database:")
        parts.append("")
        for table in tables[: Constants.PROMPT_TABLES]:
            parts.append(describe_table(table))
            parts.append("")
    parts.append(INSTRUCTIONS)
    if history:
        parts.append("User's conversation history:")
        for turn in history:
            line = f"{turn.role}: {turn.content}"
            if turn.sql:
                line += f"\n{turn.role} SQL: {turn.sql}"
            parts.append(line)
    return "\n".join(parts)


def exploration_message(prompt: str, engine: EngineKind, schema_name: str | None) -> str:
    """Rationale shown with a deterministic exploration query."""
    if schema_name:
        container = "database" if engine == "mysql" else "schema"
        return f"I'll list all tables in the {schema_name} {container} for you to choose from."
    if _ROLE_HINT_RE.search(prompt):
        return "I'll explore the database to find tables that might contain user role information."
    if _USER_HINT_RE.search(prompt):
        return "I'll explore the database to find tables that might contain user information."
    return "I'll list all available tables for you to choose from."
