from __future__ import annotations

from querygenie_mcp.schema_tools.matching import (
    describe_matches,
    find_matches,
    score_table,
    split_terms,
)
from querygenie_mcp.schema_tools.models import CanonicalSchema, ColumnInfo, TableInfo


def _table(name: str, *columns: str, schema_name: str | None = None) -> TableInfo:
    return TableInfo(
        schema_name=schema_name,
        name=name,
        columns=tuple(ColumnInfo(name=c, type="text") for c in columns),
    )


SCHEMA = CanonicalSchema(
    engine="postgres",
    tables=(
        _table("orders", "id", "user_id", "total"),
        _table("user_sessions", "id", "user_id", "started_at"),
        _table("users", "id", "email", "name"),
        _table("products", "id", "sku"),
    ),
)


def test_exact_match_ranks_first() -> None:
    ranked = find_matches(SCHEMA, ["user", "users"])
    assert [t.name for t in ranked] == ["users", "user_sessions", "orders"]


def test_zero_scores_are_dropped() -> None:
    assert all(t.name != "products" for t in find_matches(SCHEMA, ["users"]))
    assert find_matches(SCHEMA, ["invoices"]) == []


def test_ranking_is_deterministic() -> None:
    first = find_matches(SCHEMA, ["user", "order"])
    assert all(find_matches(SCHEMA, ["user", "order"]) == first for _ in range(5))


def test_ties_break_on_name() -> None:
    schema = CanonicalSchema(
        engine="postgres",
        tables=(_table("B_orders"), _table("a_orders"), _table("orders", schema_name="z")),
    )
    assert [t.name for t in find_matches(schema, ["orders"])] == ["orders", "a_orders", "B_orders"]


def test_case_insensitive() -> None:
    assert score_table(_table("Users"), ["USERS"]) == 100


def test_column_bonus() -> None:
    assert score_table(_table("orders", "user_id", "user_email"), ["user"]) == 20


def test_segment_match() -> None:
    assert score_table(_table("order_items"), ["order-items"]) == 30
    assert score_table(_table("order_items"), ["items-order"]) == 30
    assert score_table(_table("order_items"), ["order-lines"]) == 0


def test_split_terms() -> None:
    assert split_terms(["user_sessions", "order-items", "plain"]) == [
        "user",
        "sessions",
        "order",
        "items",
        "plain",
    ]


def test_describe_matches() -> None:
    assert "couldn't find" in describe_matches([])
    assert describe_matches([_table("users")]) == "I found the table: **users**"

    many = [_table(f"t{i}", "a", "b", "c", "d", "e", "f") for i in range(7)]
    text = describe_matches(many)
    assert text.startswith("I found multiple tables")
    assert "1. **t0**" in text
    assert "Columns: a, b, c, d, e, ..." in text
    assert "...and 2 more tables." in text
    assert text.endswith("Which table would you like to query?")
