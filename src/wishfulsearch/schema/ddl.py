"""Schema set validation and DDL generation.

A schema set is a tree: one main table, every other table a one-to-many child
of the main table or of another child. Validation enforces that shape before
any table is created, and DDL generation strips all prompt metadata
(examples, ranges, visibility) so only the relational structure reaches the
engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.dialects import sqlite

from wishfulsearch.exceptions import SchemaError

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect

    from wishfulsearch.core.types import SchemaSet, TableSpec


def validate_schema(schema: SchemaSet) -> None:
    """Validate the structure of a schema set.

    Args:
        schema: Schema set to check

    Raises:
        SchemaError: If names collide, a foreign key points nowhere, or the
            tables do not form a single tree under the main table
    """
    if not schema.tables:
        raise SchemaError("Schema set has no tables. Define at least one table.")

    seen_tables: set[str] = set()
    for table in schema.tables:
        if table.name in seen_tables:
            raise SchemaError(f"Duplicate table name '{table.name}'.", table.name)
        seen_tables.add(table.name)

        seen_columns: set[str] = set()
        for column in table.columns:
            if column.name in seen_columns:
                raise SchemaError(
                    f"Duplicate column '{column.name}' in table '{table.name}'. "
                    "Column names must be unique within a table.",
                    table.name,
                )
            seen_columns.add(column.name)

    main = schema.main

    # child -> parent, one parent per table
    parents: dict[str, str] = {}
    for table in schema.tables:
        for column in table.columns:
            fk = column.foreign_key
            if fk is None:
                continue
            target = schema.get_table(fk.table)
            if target is None:
                raise SchemaError(
                    f"Column '{table.name}.{column.name}' references unknown table "
                    f"'{fk.table}'. Available tables: {', '.join(schema.table_names)}",
                    table.name,
                )
            if target.get_column(fk.column) is None:
                raise SchemaError(
                    f"Column '{table.name}.{column.name}' references unknown column "
                    f"'{fk.table}.{fk.column}'. Available columns: "
                    f"{', '.join(target.column_names)}",
                    table.name,
                )
            if fk.table == table.name:
                raise SchemaError(
                    f"Table '{table.name}' references itself. Only one-to-many links "
                    "between distinct tables are supported.",
                    table.name,
                )
            existing = parents.get(table.name)
            if existing is not None and existing != fk.table:
                raise SchemaError(
                    f"Table '{table.name}' links to both '{existing}' and '{fk.table}'. "
                    "Junction tables are not supported; each child has one parent.",
                    table.name,
                )
            parents[table.name] = fk.table

    if main.name in parents:
        raise SchemaError(
            f"Main table '{main.name}' cannot reference another table.", main.name
        )

    for table in schema.tables:
        if table.name == main.name:
            continue
        path = [table.name]
        current = table.name
        while current != main.name:
            parent = parents.get(current)
            if parent is None:
                raise SchemaError(
                    f"Table '{table.name}' is not linked to main table '{main.name}'. "
                    "Add a foreign key to its parent table.",
                    table.name,
                )
            if parent in path:
                cycle = " -> ".join([*path, parent])
                raise SchemaError(f"Circular table links detected: {cycle}.", table.name)
            path.append(parent)
            current = parent


def quote_identifier(name: str, dialect: Dialect | None = None) -> str:
    """Quote an identifier for the engine's dialect when needed."""
    preparer = (dialect or sqlite.dialect()).identifier_preparer
    return preparer.quote(name)


def _comment(text: str) -> str:
    return " ".join(text.split())


def generate_table_ddl(table: TableSpec, dialect: Dialect | None = None) -> str:
    """Render a CREATE TABLE statement for one table."""
    lines: list[str] = []
    for column in table.columns:
        line = f"  {quote_identifier(column.name, dialect)} {column.sql_type}"
        lines.append(line)

    for column in table.columns:
        fk = column.foreign_key
        if fk is not None:
            lines.append(
                f"  FOREIGN KEY ({quote_identifier(column.name, dialect)}) "
                f"REFERENCES {quote_identifier(fk.table, dialect)}"
                f"({quote_identifier(fk.column, dialect)})"
            )

    # Comments trail the separating comma so the statement stays valid
    rendered: list[str] = []
    for i, line in enumerate(lines):
        separator = "," if i < len(lines) - 1 else ""
        comment = ""
        if i < len(table.columns) and table.columns[i].description:
            comment = f" -- {_comment(table.columns[i].description)}"
        rendered.append(f"{line}{separator}{comment}")

    body = "\n".join(rendered)
    return f"CREATE TABLE {quote_identifier(table.name, dialect)} (\n{body}\n);"


def ordered_tables(schema: SchemaSet) -> list[TableSpec]:
    """Tables ordered so every parent precedes its children."""
    ordered: list[TableSpec] = []
    remaining = list(schema.tables)
    created: set[str] = set()
    while remaining:
        progressed = False
        for table in list(remaining):
            deps = {c.foreign_key.table for c in table.columns if c.foreign_key is not None}
            if deps <= created:
                ordered.append(table)
                created.add(table.name)
                remaining.remove(table)
                progressed = True
        if not progressed:
            names = ", ".join(t.name for t in remaining)
            raise SchemaError(f"Cannot order tables with unresolved links: {names}.")

    return ordered


def generate_ddl(schema: SchemaSet, dialect: Dialect | None = None) -> list[str]:
    """Render CREATE TABLE statements for every table, parents first.

    Args:
        schema: Validated schema set
        dialect: SQLAlchemy dialect used for identifier quoting (SQLite by default)

    Returns:
        One statement per table, in ``ordered_tables`` order
    """
    return [generate_table_ddl(table, dialect) for table in ordered_tables(schema)]
