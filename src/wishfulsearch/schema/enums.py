"""Dynamic enum computation.

Columns can ask for their prompt hints to be derived from the loaded data:
distinct values (optionally capped by count or by total characters) or a
min/max range. Computing them never mutates the input schema set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from wishfulsearch.core.types import (
    CharLimitedEnum,
    ColumnSpec,
    ExhaustiveEnum,
    MinMaxEnum,
    SchemaSet,
    TableSpec,
    ValueRange,
)
from wishfulsearch.schema.ddl import quote_identifier

if TYPE_CHECKING:
    from sqlalchemy import Connection, Engine

logger = logging.getLogger(__name__)

NULL_MARKER = "NULL"


def _stringify(value: Any) -> str:
    if value is None:
        return NULL_MARKER
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _distinct_by_frequency(
    conn: Connection, table: str, column: str, limit: int | None = None
) -> list[str]:
    tbl = quote_identifier(table)
    col = quote_identifier(column)
    sql = (
        f"SELECT {col}, COUNT(*) AS n FROM {tbl} "
        f"WHERE {col} IS NOT NULL AND {col} != '' "
        f"GROUP BY {col} ORDER BY n DESC, {col} ASC"
    )
    params: dict[str, Any] = {}
    if limit is not None:
        sql += " LIMIT :limit"
        params["limit"] = limit
    return [_stringify(row[0]) for row in conn.execute(text(sql), params)]


def _exhaustive(conn: Connection, table: str, settings: ExhaustiveEnum, column: str) -> list[str]:
    return _distinct_by_frequency(conn, table, column, settings.top_k)


def _char_limited(
    conn: Connection, table: str, settings: CharLimitedEnum, column: str
) -> list[str]:
    values: list[str] = []
    used = 0
    for value in _distinct_by_frequency(conn, table, column):
        if used + len(value) > settings.char_limit:
            break
        values.append(value)
        used += len(value)
    return values


def _min_max(
    conn: Connection, table: str, settings: MinMaxEnum, column: str
) -> ValueRange | None:
    tbl = quote_identifier(table)
    col = quote_identifier(column)
    # NUMBER compares numerically; DATE relies on ISO-8601 text ordering
    expr = f"CAST({col} AS REAL)" if settings.format == "NUMBER" else col
    row = conn.execute(
        text(
            f"SELECT MIN({expr}), MAX({expr}) FROM {tbl} "
            f"WHERE {col} IS NOT NULL AND {col} != ''"
        )
    ).one()
    if row[0] is None:
        return None

    exceptions: list[str] = []
    has_null = conn.execute(text(f"SELECT 1 FROM {tbl} WHERE {col} IS NULL LIMIT 1")).first()
    if has_null is not None:
        exceptions.append(NULL_MARKER)
    has_empty = conn.execute(text(f"SELECT 1 FROM {tbl} WHERE {col} = '' LIMIT 1")).first()
    if has_empty is not None:
        exceptions.append("")

    return ValueRange(min=_stringify(row[0]), max=_stringify(row[1]), exceptions=exceptions)


def refresh_column(conn: Connection, table: str, column: ColumnSpec) -> ColumnSpec:
    """Return a copy of the column with hints recomputed from data."""
    settings = column.dynamic_enum
    if settings is None:
        return column

    if isinstance(settings, MinMaxEnum):
        value_range = _min_max(conn, table, settings, column.name)
        return column.model_copy(update={"value_range": value_range})

    if isinstance(settings, CharLimitedEnum):
        values = _char_limited(conn, table, settings, column.name)
    else:
        values = _exhaustive(conn, table, settings, column.name)
    return column.model_copy(update={"example_values": values or None})


def compute_dynamic_enums(schema: SchemaSet, engine: Engine) -> SchemaSet:
    """Recompute every dynamic enum in the schema from the loaded data.

    Args:
        schema: Schema set whose tables exist in the engine
        engine: SQLAlchemy engine holding the data

    Returns:
        A new SchemaSet with refreshed example values and ranges
    """
    tables: list[TableSpec] = []
    with engine.connect() as conn:
        for table in schema.tables:
            columns = [refresh_column(conn, table.name, column) for column in table.columns]
            refreshed = sum(1 for c in table.columns if c.dynamic_enum is not None)
            if refreshed:
                logger.debug(f"Refreshed {refreshed} dynamic enum(s) on '{table.name}'")
            tables.append(table.model_copy(update={"columns": columns}))
    return schema.model_copy(update={"tables": tables})
