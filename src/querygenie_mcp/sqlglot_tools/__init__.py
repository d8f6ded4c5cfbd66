"""SQLGlot-backed statement helpers.

Typed service wrapper around sqlglot used to bound row-returning statements
and to annotate execution failures.
"""

from __future__ import annotations

from .models import (
    Dialect,
    SqlErrorAssistRequest,
    SqlErrorAssistResult,
    SqlValidationRequest,
    SqlValidationResult,
    StatementShape,
)
from .service import SqlglotService, map_engine_to_sqlglot

__all__ = [
    "Dialect",
    "SqlErrorAssistRequest",
    "SqlErrorAssistResult",
    "SqlValidationRequest",
    "SqlValidationResult",
    "SqlglotService",
    "StatementShape",
    "map_engine_to_sqlglot",
]
