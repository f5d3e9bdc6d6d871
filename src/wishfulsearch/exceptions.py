"""Custom exceptions for WishfulSearch.

All exceptions carry an actionable message plus a JSON-serializable context,
so callers (humans or agents) can diagnose a failure without internal logs.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class WishfulSearchError(Exception):
    """Base exception for all WishfulSearch errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConnectionError(WishfulSearchError):
    """Failed to connect to the embedded database."""

    pass


class SchemaError(WishfulSearchError):
    """The schema set is structurally invalid."""

    def __init__(self, message: str, table_name: str | None = None) -> None:
        super().__init__(message, {"table_name": table_name} if table_name else {})
        self.table_name = table_name


class IngestionError(WishfulSearchError):
    """Rows produced for insertion do not match the schema."""

    pass


class AnalysisError(WishfulSearchError):
    """The object analysis flow could not run or save its report."""

    pass


class TransportError(WishfulSearchError):
    """The LLM call itself failed (network, auth, rate limit).

    Never retried by the query loop; propagated to the caller immediately.
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message, {"provider": provider} if provider else {})
        self.provider = provider


class ExtractionErrorKind(StrEnum):
    """Reasons model output could not be turned into SQL."""

    NO_SQL_BLOCK = "NoSQLBlock"


class ExtractionError(WishfulSearchError):
    """Model output did not contain a usable SQL block."""

    def __init__(
        self,
        message: str,
        kind: ExtractionErrorKind = ExtractionErrorKind.NO_SQL_BLOCK,
    ) -> None:
        super().__init__(message, {"kind": kind.value})
        self.kind = kind


class ExecutionErrorKind(StrEnum):
    """Reasons extracted SQL was rejected or failed in the engine."""

    SYNTAX = "Syntax"
    UNKNOWN_COLUMN = "UnknownColumn"
    UNKNOWN_TABLE = "UnknownTable"
    UNSAFE = "Unsafe"
    ENGINE = "Engine"


class ExecutionError(WishfulSearchError):
    """SQL was rejected before execution or failed inside the engine."""

    def __init__(self, kind: ExecutionErrorKind, message: str, sql: str | None = None) -> None:
        super().__init__(message, {"kind": kind.value, "sql": sql})
        self.kind = kind
        self.sql = sql


class BudgetExceededError(WishfulSearchError):
    """Every attempt failed and the retry budget is exhausted."""

    def __init__(
        self,
        attempts: int,
        last_error: ExtractionError | ExecutionError,
        last_sql: str | None = None,
    ) -> None:
        message = f"Query failed after {attempts} attempt(s). Last error: {last_error.message}"
        if last_sql:
            message += f"\nLast SQL: {last_sql}"
        super().__init__(
            message,
            {
                "attempts": attempts,
                "last_error": last_error.to_dict(),
                "last_sql": last_sql,
            },
        )
        self.attempts = attempts
        self.last_error = last_error
        self.last_sql = last_sql
