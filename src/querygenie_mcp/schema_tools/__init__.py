"""Schema introspection and relevance matching.

Main Components:
- SchemaIntrospector: Reads catalog metadata into the canonical model
- find_matches: Deterministic table ranking against search terms
- CanonicalSchema / TableInfo / ColumnInfo: Frozen, engine-neutral schema types
"""

from __future__ import annotations

from .introspection import SchemaIntrospector, fold_catalog
from .matching import describe_matches, find_matches, score_table, split_terms
from .models import CanonicalSchema, ColumnInfo, ForeignKeyRef, TableInfo

__all__ = [
    "CanonicalSchema",
    "ColumnInfo",
    "ForeignKeyRef",
    "SchemaIntrospector",
    "TableInfo",
    "describe_matches",
    "find_matches",
    "fold_catalog",
    "score_table",
    "split_terms",
]
