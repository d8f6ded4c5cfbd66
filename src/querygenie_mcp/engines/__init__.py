"""Per-engine adapters behind a shared connect / execute / introspect contract."""

from __future__ import annotations

from .base import EngineAdapter, EngineHandle, RawCatalog, RawResult
from .mysql import MySQLAdapter
from .postgres import PostgresAdapter
from .registry import get_adapter, supported_engines
from .sqlite import SQLiteAdapter

__all__ = [
    "EngineAdapter",
    "EngineHandle",
    "MySQLAdapter",
    "PostgresAdapter",
    "RawCatalog",
    "RawResult",
    "SQLiteAdapter",
    "get_adapter",
    "supported_engines",
]
