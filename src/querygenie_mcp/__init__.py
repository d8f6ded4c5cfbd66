"""querygenie-mcp package.

Safely executes SQL against external databases with encrypted, on-demand
credentials, and converts natural-language requests into SQL by exploring
the live schema of the target database. Exposed as a FastMCP server.
"""

from querygenie_mcp.errors import QueryGenieError
from querygenie_mcp.execute import ExecutionRequest, ExecutionResult, QueryExecutor
from querygenie_mcp.generation import GenerationEngine, GenerationResponse
from querygenie_mcp.models import ConnectionConfig, SslConfig
from querygenie_mcp.schema_tools import CanonicalSchema, SchemaIntrospector, find_matches
from querygenie_mcp.security import CredentialVault
from querygenie_mcp.services import ConfigService, CoreServices

__all__ = [  # noqa: RUF022
    # Core models
    "CanonicalSchema",
    "ConnectionConfig",
    "ExecutionRequest",
    "ExecutionResult",
    "GenerationResponse",
    "SslConfig",
    # Components
    "CredentialVault",
    "GenerationEngine",
    "QueryExecutor",
    "SchemaIntrospector",
    "find_matches",
    # Services
    "ConfigService",
    "CoreServices",
    # Errors
    "QueryGenieError",
]
