"""Query executor for validated, read-only SQL.

Runs a statement against the embedded engine inside a read-only connection,
maps engine failures onto ``ExecutionErrorKind`` and returns rows in a
uniform shape: column names plus row arrays.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from wishfulsearch.core.connection import DatabaseConnection, read_only_connection
from wishfulsearch.core.types import TabularResult
from wishfulsearch.exceptions import ExecutionError, ExecutionErrorKind
from wishfulsearch.query.validator import QueryValidator

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 1000

# Engine message fragments -> failure kind, checked in order
ERROR_MARKERS: list[tuple[str, ExecutionErrorKind]] = [
    ("no such column", ExecutionErrorKind.UNKNOWN_COLUMN),
    ("has no column named", ExecutionErrorKind.UNKNOWN_COLUMN),
    ("no such table", ExecutionErrorKind.UNKNOWN_TABLE),
    ("syntax error", ExecutionErrorKind.SYNTAX),
    ("incomplete input", ExecutionErrorKind.SYNTAX),
    ("unrecognized token", ExecutionErrorKind.SYNTAX),
    ("no such function", ExecutionErrorKind.SYNTAX),
    ("wrong number of arguments", ExecutionErrorKind.SYNTAX),
    ("readonly database", ExecutionErrorKind.UNSAFE),
    ("attempt to write", ExecutionErrorKind.UNSAFE),
]


def classify_engine_error(message: str) -> ExecutionErrorKind:
    """Map a raw engine error message to a failure kind."""
    lowered = message.lower()
    for marker, kind in ERROR_MARKERS:
        if marker in lowered:
            return kind
    return ExecutionErrorKind.ENGINE


def _engine_message(error: SQLAlchemyError) -> str:
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return str(error)


class QueryExecutor:
    """Executes single read-only statements with a row cap."""

    def __init__(
        self,
        row_limit: int = DEFAULT_ROW_LIMIT,
        validator: QueryValidator | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            row_limit: Maximum rows materialized per statement
            validator: Statement validator (default QueryValidator)
        """
        self._row_limit = row_limit
        self._validator = validator or QueryValidator()

    def execute(self, sql: str, engine: DatabaseConnection | Engine) -> TabularResult:
        """Validate and execute a statement.

        Args:
            sql: Statement to run
            engine: Database handle

        Returns:
            TabularResult with column names, row arrays and a truncation flag

        Raises:
            ExecutionError: If the statement is rejected (UNSAFE, never reaches
                the engine) or the engine reports an error
        """
        validation = self._validator.validate(sql)
        if not validation.valid:
            kind = validation.kind or ExecutionErrorKind.UNSAFE
            logger.warning(f"Rejected statement ({kind.value}): {validation.error}")
            raise ExecutionError(kind, validation.error or "Query rejected", sql)

        sa_engine = engine.engine if isinstance(engine, DatabaseConnection) else engine

        start_time = time.perf_counter()
        try:
            with read_only_connection(sa_engine) as conn:
                result = conn.exec_driver_sql(validation.sql)
                if not result.returns_rows:
                    return TabularResult(sql=validation.sql, columns=[], rows=[])
                columns = list(result.keys())
                fetched = result.fetchmany(self._row_limit + 1)
                result.close()
        except SQLAlchemyError as e:
            message = _engine_message(e)
            kind = classify_engine_error(message)
            raise ExecutionError(kind, message, validation.sql) from e

        truncated = len(fetched) > self._row_limit
        rows = [list(row) for row in fetched[: self._row_limit]]
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Executed query in {execution_time_ms:.2f}ms: {len(rows)} row(s)"
            + (" (truncated)" if truncated else "")
        )

        return TabularResult(
            sql=validation.sql,
            columns=columns,
            rows=rows,
            truncated=truncated,
        )


def execute_query(
    sql: str,
    engine: DatabaseConnection | Engine,
    row_limit: int = DEFAULT_ROW_LIMIT,
) -> TabularResult:
    """Convenience function to execute a read-only statement."""
    return QueryExecutor(row_limit=row_limit).execute(sql, engine)
