"""Canonical, engine-agnostic schema model.

Built fresh per introspection call and never mutated in place; every model is
frozen, so a changed schema is always a new object.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from querygenie_mcp.models import EngineKind


class ForeignKeyRef(BaseModel):
    """Target of a foreign-key column."""

    model_config = ConfigDict(frozen=True)

    table: str = Field(description="Referenced table, schema-qualified when the engine has schemas")
    column: str | None = Field(default=None, description="Referenced column when reported")


class ColumnInfo(BaseModel):
    """One column as reported by the engine catalog."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Column name in engine case")
    type: str = Field(description="Declared type as reported by the engine")
    nullable: bool = Field(default=True, description="Whether NULL is allowed")
    is_primary: bool = Field(default=False, description="Part of the primary key")
    is_foreign: bool = Field(default=False, description="Part of a foreign key")
    references: ForeignKeyRef | None = Field(default=None, description="Foreign-key target")


class TableInfo(BaseModel):
    """A table with its ordered columns."""

    model_config = ConfigDict(frozen=True)

    schema_name: str | None = Field(default=None, description="Namespace qualifier, if any")
    name: str = Field(description="Table name in engine case")
    columns: tuple[ColumnInfo, ...] = Field(default=(), description="Columns in ordinal order")

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name


class CanonicalSchema(BaseModel):
    """Engine-neutral snapshot of one database's tables.

    ``complete`` is ``False`` when some catalog metadata (for example key
    constraints) could not be read; ``warnings`` says which.
    """

    model_config = ConfigDict(frozen=True)

    engine: EngineKind = Field(description="Engine the schema was read from")
    tables: tuple[TableInfo, ...] = Field(default=(), description="User tables")
    schemas: tuple[str, ...] = Field(default=(), description="User schema names")
    complete: bool = Field(default=True, description="All catalog queries succeeded")
    warnings: tuple[str, ...] = Field(default=(), description="Partial-failure notes")

    @property
    def is_empty(self) -> bool:
        return not self.tables
