"""Exploration-first conversation harness.

Walks one schema-unaware conversation against a throwaway SQLite database:
 - generate_sql on an unknown schema → deterministic exploration query
 - execute the exploration with the exploration budget
 - fold the result into history and ask again (needs a provider key)
 - show the read-only guard rejecting a write

Usage:
    uv run python scripts/conversation_harness.py [--provider claude]
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
import tempfile
from typing import Final

import dotenv

# Load env early
dotenv.load_dotenv()

# Add the project src/ to Python path for local imports when run directly
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

import sqlalchemy as sa  # noqa: E402

from querygenie_mcp.execute.models import ExecutionRequest, ExecutionResult  # noqa: E402
from querygenie_mcp.execute.runner import QueryExecutor  # noqa: E402
from querygenie_mcp.generation.engine import GenerationEngine  # noqa: E402
from querygenie_mcp.generation.models import ExplorationResponse, GenerationResponse  # noqa: E402
from querygenie_mcp.generation.providers import ProviderClient  # noqa: E402
from querygenie_mcp.models import ConnectionConfig  # noqa: E402
from querygenie_mcp.schema_tools.introspection import SchemaIntrospector  # noqa: E402
from querygenie_mcp.security.vault import CredentialVault  # noqa: E402
from querygenie_mcp.services.config_service import ConfigService  # noqa: E402

SEPARATOR: Final[str] = "=" * 72

SEED_SQL: Final[tuple[str, ...]] = (
    "CREATE TABLE customers(id INTEGER PRIMARY KEY, name TEXT NOT NULL, region TEXT)",
    "CREATE TABLE invoices(id INTEGER PRIMARY KEY, "
    "customer_id INTEGER REFERENCES customers(id), amount REAL, issued_on TEXT)",
    "INSERT INTO customers(name, region) VALUES ('Acme','EU'),('Globex','US'),('Initech',NULL)",
    "INSERT INTO invoices(customer_id, amount, issued_on) VALUES "
    "(1, 120.0, '2024-01-03'),(1, 80.5, '2024-02-11'),(2, 42.0, '2024-02-20')",
)


def banner(title: str) -> None:
    print(f"\n{SEPARATOR}\n{title}\n{SEPARATOR}")


def section(title: str) -> None:
    print(f"\n-- {title}")


def seed(path: Path) -> None:
    engine = sa.create_engine(f"sqlite+pysqlite:///{path}")
    with engine.begin() as conn:
        for stmt in SEED_SQL:
            conn.exec_driver_sql(stmt)
    engine.dispose()


def show_response(response: GenerationResponse) -> None:
    print(f"> type: {response.type}")
    match response.type:
        case "query":
            print(f"  query: {response.query}")
            print(f"  explanation: {response.explanation}")
        case "exploration":
            print(f"  message: {response.message}")
            print(f"  exploration_query:\n{response.exploration_query}")
        case "clarification":
            print(f"  message: {response.message}")
        case "error":
            print(f"  {response.kind}: {response.message}")


def show_result(result: ExecutionResult) -> None:
    if not result.success:
        kind = result.error.kind if result.error else "?"
        print(f"> failed ({kind}): {result.error.message if result.error else ''}")
        for note in result.assist_notes:
            print("  •", note)
        return
    print(f"> {result.row_count} rows in {result.elapsed_ms:.1f} ms (truncated={result.truncated})")
    print("  " + " | ".join(result.columns))
    for row in result.rows or []:
        print("  " + " | ".join("NULL" if v is None else str(v) for v in row))


def main() -> None:
    banner("Exploration-first conversation")
    parser = argparse.ArgumentParser(description="Walk one exploration-first conversation")
    parser.add_argument("--provider", choices=["gemini", "claude", "gpt4"], default="gemini")
    parser.add_argument(
        "--prompt", default="What is the total invoice amount per customer?", help="Data question"
    )
    args = parser.parse_args()

    vault = CredentialVault("harness-secret")
    executor = QueryExecutor(vault)
    generator = GenerationEngine(
        ProviderClient(ConfigService.provider_settings()), SchemaIntrospector(vault)
    )

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "harness.db"
        seed(path)
        connection = ConnectionConfig(engine="sqlite", database=str(path))

        section("Schema discovery prompt")
        first = generator.generate("What tables are available?", connection)
        show_response(first)
        if not isinstance(first, ExplorationResponse):
            sys.exit(1)

        section("Execute exploration")
        explored = executor.execute(
            ExecutionRequest(
                connection=connection,
                sql=first.exploration_query,
                limit=ConfigService.exploration_row_limit(),
                timeout_ms=ConfigService.exploration_timeout_ms(),
            )
        )
        show_result(explored)

        section(f"Data question via {args.provider}")
        api_key = ConfigService.provider_api_key(args.provider)
        if not api_key:
            print("  (no provider key configured; expect ProviderConfigurationError)")
        second = generator.continue_exploration(
            args.prompt, connection, first, explored, provider=args.provider, api_key=api_key
        )
        show_response(second)
        if second.type == "query":
            show_result(executor.execute(ExecutionRequest(connection=connection, sql=second.query)))

        section("Read-only guard")
        show_result(
            executor.execute(ExecutionRequest(connection=connection, sql="DELETE FROM invoices"))
        )


if __name__ == "__main__":
    main()
