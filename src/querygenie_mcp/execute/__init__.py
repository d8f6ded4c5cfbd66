"""Single-statement execution with safety checks, limits and classification.

Exports typed models and the executor. The FastMCP registration helper lives
in `querygenie_mcp.execute.mcp_tools`.
"""

from __future__ import annotations

from .models import ExecutionFailure, ExecutionRequest, ExecutionResult
from .runner import ExecutionLimits, QueryExecutor

__all__ = [
    "ExecutionFailure",
    "ExecutionLimits",
    "ExecutionRequest",
    "ExecutionResult",
    "QueryExecutor",
]
