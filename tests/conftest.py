from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlalchemy import text

from querygenie_mcp.models import ConnectionConfig
from querygenie_mcp.security.vault import CredentialVault

TEST_SECRET = "unit-test-secret"


@pytest.fixture(scope="session")
def vault() -> CredentialVault:
    return CredentialVault(TEST_SECRET)


def _setup_sqlite(path: Path) -> None:
    engine = sa.create_engine(f"sqlite+pysqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users(id INTEGER PRIMARY KEY, email TEXT NOT NULL, name TEXT)"))
        conn.execute(
            text(
                "CREATE TABLE user_sessions("
                "id INTEGER PRIMARY KEY, user_id INTEGER REFERENCES users(id), started_at TEXT)"
            )
        )
        conn.execute(
            text(
                "CREATE TABLE orders("
                "id INTEGER PRIMARY KEY, user_id INTEGER NOT NULL REFERENCES users(id), total REAL)"
            )
        )
        conn.execute(
            text(
                "INSERT INTO users(email, name) VALUES "
                "('a@example.com','Alice'),('b@example.com','Bob'),('c@example.com','Charlie'),"
                "('d@example.com',NULL),('e@example.com','Eve'),('f@example.com','Frank'),"
                "('g@example.com','Grace')"
            )
        )
        conn.execute(text("INSERT INTO orders(user_id, total) VALUES (1, 9.5),(2, NULL)"))
    engine.dispose()


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    path = tmp_path / "app.db"
    _setup_sqlite(path)
    return path


@pytest.fixture
def sqlite_connection(sqlite_path: Path) -> ConnectionConfig:
    return ConnectionConfig(engine="sqlite", database=str(sqlite_path))
