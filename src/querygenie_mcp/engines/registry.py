"""Engine kind to adapter lookup."""

from __future__ import annotations

from typing import Final

from querygenie_mcp.errors import UnsupportedEngine

from .base import EngineAdapter
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

_ADAPTERS: Final[dict[str, EngineAdapter]] = {
    "postgres": PostgresAdapter(),
    "mysql": MySQLAdapter(),
    "sqlite": SQLiteAdapter(),
}


def supported_engines() -> list[str]:
    """Engine kinds that have an adapter."""
    return sorted(_ADAPTERS)


def get_adapter(kind: str) -> EngineAdapter:
    """Return the stateless adapter for ``kind``.

    Raises:
        UnsupportedEngine: For ``mssql`` and any unknown kind
    """
    adapter = _ADAPTERS.get(kind)
    if adapter is None:
        msg = f"Database type {kind} not yet supported"
        raise UnsupportedEngine(msg)
    return adapter
