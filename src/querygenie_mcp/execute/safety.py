"""Lexical statement checks applied before any statement is dispatched.

These checks are a shallow, keyword-based guard and not a SQL parser. They
can over-reject (a column named ``grant_id`` trips the ``GRANT`` entry) and
under-reject administrative statements phrased unusually. Treat them as a
best-effort guard, not a security boundary.
"""

from __future__ import annotations

import re
from typing import Final, Literal

from querygenie_mcp.errors import ForbiddenOperation, StatementValidationError
from querygenie_mcp.models import ConnectionConfig

DENYLIST: Final[tuple[str, ...]] = (
    "DROP DATABASE",
    "CREATE DATABASE",
    "ALTER DATABASE",
    "GRANT",
    "REVOKE",
    "CREATE USER",
    "DROP USER",
    "ALTER USER",
)

WRITE_KEYWORDS: Final[tuple[str, ...]] = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "CREATE",
    "DROP",
    "ALTER",
    "TRUNCATE",
)

_LINE_COMMENT_RE = re.compile(r"--[^\n]*")
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_WRITE_RE = re.compile(r"^\s*(" + "|".join(WRITE_KEYWORDS) + r")\b", re.IGNORECASE)

StatementType = Literal["read", "write"]


def strip_comments(sql: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments.

    String literals are not tokenized, so comment markers inside quotes are
    stripped as well.
    """
    without_block = _BLOCK_COMMENT_RE.sub(" ", sql)
    return _LINE_COMMENT_RE.sub("", without_block)


def strip_trailing_semicolon(sql: str) -> str:
    s = sql.strip()
    return s.removesuffix(";").rstrip()


def validate_statement(sql: str) -> str:
    """Validate statement shape and return the comment-free, trimmed text.

    Raises:
        StatementValidationError: Empty input, more than one statement, or a
            denylisted administrative keyword
    """
    cleaned = strip_comments(sql).strip()
    if not cleaned or cleaned == ";":
        msg = "Query cannot be empty"
        raise StatementValidationError(msg)

    # A semicolon is only allowed as the very last character
    if ";" in cleaned[:-1]:
        msg = "Multiple SQL statements are not allowed. Please execute one query at a time."
        raise StatementValidationError(msg)

    upper = cleaned.upper()
    for keyword in DENYLIST:
        if keyword in upper:
            msg = f"Dangerous operation detected: {keyword}"
            raise StatementValidationError(msg)
    return cleaned


def leading_write_keyword(sql: str) -> str | None:
    """Return the write-shaped leading keyword (upper-cased), if any."""
    match = _WRITE_RE.match(strip_comments(sql))
    return match.group(1).upper() if match else None


def is_write_statement(sql: str) -> bool:
    return leading_write_keyword(sql) is not None


def statement_type(sql: str) -> StatementType:
    return "write" if is_write_statement(sql) else "read"


def ensure_mode_allows(sql: str, connection: ConnectionConfig) -> None:
    """Reject write-shaped statements on read-only connections.

    Raises:
        ForbiddenOperation: When the connection is read-only and the statement
            starts with a write keyword
    """
    keyword = leading_write_keyword(sql)
    if keyword is not None and connection.is_read_only:
        msg = f"{keyword} operations are not allowed on a read-only connection"
        raise ForbiddenOperation(msg)
