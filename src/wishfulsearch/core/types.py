"""Core types and specifications for WishfulSearch.

All types are pydantic models so schema sets round-trip through JSON (the
"structured DDL" produced by the analyze flow) and results serialize cleanly
for CLI and agent consumption.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from wishfulsearch.exceptions import SchemaError


class MessageRole(StrEnum):
    """Roles in a chat conversation sent to an LLM."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One role-tagged turn of a conversation."""

    role: MessageRole
    content: str

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> ChatMessage:
        return cls(role=MessageRole.ASSISTANT, content=content)


# === Schema model ===


class ForeignKeyRef(BaseModel):
    """Parent side of a one-to-many link."""

    table: str = Field(..., description="Parent table name")
    column: str = Field(..., description="Referenced column on the parent table")

    model_config = ConfigDict(frozen=True)


class ValueRange(BaseModel):
    """Known range of values in a column, plus values outside the range."""

    min: str
    max: str
    exceptions: list[str] = Field(
        default_factory=list, description="Values outside the range, like NULL"
    )

    model_config = ConfigDict(frozen=True)


class ExhaustiveEnum(BaseModel):
    """List distinct values, most frequent first."""

    type: Literal["EXHAUSTIVE"] = "EXHAUSTIVE"
    top_k: int | None = Field(default=None, description="Only keep the top K values")

    model_config = ConfigDict(frozen=True)


class CharLimitedEnum(BaseModel):
    """List distinct values until the total character budget is spent."""

    type: Literal["EXHAUSTIVE_CHAR_LIMITED"] = "EXHAUSTIVE_CHAR_LIMITED"
    char_limit: int = Field(..., gt=0)

    model_config = ConfigDict(frozen=True)


class MinMaxEnum(BaseModel):
    """Summarize values as a min/max range."""

    type: Literal["MIN_MAX"] = "MIN_MAX"
    format: Literal["DATE", "NUMBER"] = "NUMBER"

    model_config = ConfigDict(frozen=True)


DynamicEnumSettings = Annotated[
    ExhaustiveEnum | CharLimitedEnum | MinMaxEnum,
    Field(discriminator="type"),
]


class ColumnSpec(BaseModel):
    """Specification of a single column.

    Only ``name``, ``sql_type``, ``description`` and ``foreign_key`` reach the
    engine's DDL. The rest is metadata for the natural-language-to-SQL prompt.
    """

    name: str = Field(..., description="Column name")
    sql_type: str = Field(default="TEXT", description="SQL type of the column")
    description: str = Field(default="", description="Human-readable description")
    foreign_key: ForeignKeyRef | None = Field(
        default=None, description="Parent table/column, one-to-many only"
    )
    visible_to_llm: bool = Field(
        default=True, description="Whether the column is exposed to the query prompt"
    )
    example_values: list[str] | None = Field(
        default=None, description="Known values, static or computed from data"
    )
    value_range: ValueRange | None = Field(default=None, description="Known min/max range")
    dynamic_enum: DynamicEnumSettings | None = Field(
        default=None, description="How to refresh example values or range from loaded data"
    )

    model_config = ConfigDict(frozen=True)


class TableSpec(BaseModel):
    """A table: a name and its ordered columns."""

    name: str
    columns: list[ColumnSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def visible_columns(self) -> list[ColumnSpec]:
        return [c for c in self.columns if c.visible_to_llm]

    def get_column(self, name: str) -> ColumnSpec | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None


class SchemaSet(BaseModel):
    """Ordered tables forming a tree of one-to-many links under a main table.

    ``main_table`` defaults to the first table. Instances are treated as
    immutable: refreshing dynamic enums produces a new SchemaSet.
    """

    tables: list[TableSpec]
    main_table: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def main(self) -> TableSpec:
        name = self.main_table or (self.tables[0].name if self.tables else None)
        table = self.get_table(name) if name else None
        if table is None:
            raise SchemaError(
                f"Main table '{name}' not found. Define at least one table "
                f"and set main_table to one of: {', '.join(self.table_names)}"
            )
        return table

    @property
    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> TableSpec | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @classmethod
    def from_tables(
        cls, tables: list[dict[str, Any]] | list[TableSpec], main_table: str | None = None
    ) -> SchemaSet:
        """Build a schema set from table dicts (e.g. parsed structured DDL)."""
        return cls.model_validate({"tables": tables, "main_table": main_table})


# === Query results ===


class AskOptions(BaseModel):
    """Per-call options for natural-language querying."""

    max_retries: int = Field(
        default=2, ge=0, description="Corrective retries after the first attempt"
    )
    row_limit: int = Field(default=1000, gt=0, description="Maximum rows materialized per query")
    dialect: str = Field(default="SQLite", description="SQL dialect named in the prompt")


class TabularResult(BaseModel):
    """Rows from an executed statement in a uniform shape."""

    sql: str
    columns: list[str]
    rows: list[list[Any]]
    truncated: bool = False

    def records(self) -> list[dict[str, Any]]:
        """Rows as column-keyed dicts."""
        return [dict(zip(self.columns, row, strict=True)) for row in self.rows]


class QueryResult(TabularResult):
    """Final answer to a natural-language question, with provenance."""

    explanation: str = ""
    attempts: int = 1
