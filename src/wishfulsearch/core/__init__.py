"""Core components for WishfulSearch."""

from wishfulsearch.core.connection import DatabaseConnection
from wishfulsearch.core.types import (
    AskOptions,
    ChatMessage,
    ColumnSpec,
    ForeignKeyRef,
    MessageRole,
    QueryResult,
    SchemaSet,
    TableSpec,
    TabularResult,
    ValueRange,
)

__all__ = [
    "DatabaseConnection",
    "AskOptions",
    "ChatMessage",
    "MessageRole",
    "ColumnSpec",
    "ForeignKeyRef",
    "ValueRange",
    "TableSpec",
    "SchemaSet",
    "TabularResult",
    "QueryResult",
]
