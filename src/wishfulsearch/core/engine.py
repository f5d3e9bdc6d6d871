"""Main WishfulSearch engine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect, text

from wishfulsearch.core.connection import MEMORY_URL, DatabaseConnection
from wishfulsearch.core.types import (
    AskOptions,
    ChatMessage,
    QueryResult,
    SchemaSet,
    TabularResult,
)
from wishfulsearch.exceptions import IngestionError, WishfulSearchError
from wishfulsearch.query.executor import QueryExecutor
from wishfulsearch.query.orchestrator import Orchestrator
from wishfulsearch.query.prompt import PromptBuilder
from wishfulsearch.schema.ddl import (
    generate_ddl,
    ordered_tables,
    quote_identifier,
    validate_schema,
)
from wishfulsearch.schema.enums import compute_dynamic_enums

if TYPE_CHECKING:
    from wishfulsearch.llm.base import LLMCall

logger = logging.getLogger(__name__)

RowsByTable = Iterable[Sequence[Sequence[Any]]]
ObjectToRows = Callable[[Sequence[Any]], RowsByTable]


class WishfulSearch:
    """Natural-language search over objects flattened into an embedded database.

    Owns the database, the current schema set and the LLM call. Data goes in
    through a caller-supplied ``object_to_rows`` mapping; questions come out
    as SQL, explanation and rows.

    Example:
        >>> ws = WishfulSearch(schema, llm=get_adapter("openai"))
        >>> ws.insert(flights, flights_to_rows)
        >>> result = ws.ask("flights to Paris in March")
        >>> result.sql, result.rows
    """

    def __init__(
        self,
        schema: SchemaSet,
        llm: LLMCall | None = None,
        url: str = MEMORY_URL,
        echo: bool = False,
        options: AskOptions | None = None,
    ) -> None:
        """Initialize and create the schema's tables.

        Args:
            schema: Schema set describing the tables
            llm: Callable taking messages and returning completion text
            url: SQLite URL (in-memory by default)
            echo: Whether to echo SQL statements (for debugging)
            options: Default options for ``ask``

        Raises:
            SchemaError: If the schema set is invalid
        """
        validate_schema(schema)
        self._schema = schema
        self._llm = llm
        self._options = options or AskOptions()
        self._connection = DatabaseConnection(url, echo=echo)
        self._ddl = generate_ddl(schema, self._connection.engine.dialect)
        self._ddl_order = [table.name for table in ordered_tables(schema)]
        self._create_tables()

    def _create_tables(self) -> None:
        # generate_ddl orders parents first; match statements back to their tables
        existing = set(inspect(self._connection.engine).get_table_names())
        created: list[str] = []
        with self._connection.engine.begin() as conn:
            for statement, name in zip(self._ddl, self._ddl_order, strict=True):
                if name in existing:
                    continue
                conn.exec_driver_sql(statement)
                created.append(name)
        if created:
            logger.info(f"Created {len(created)} table(s): {', '.join(created)}")

    @property
    def schema(self) -> SchemaSet:
        """Current schema set, including refreshed dynamic enums."""
        return self._schema

    @property
    def ddl(self) -> list[str]:
        """CREATE TABLE statements used for this database."""
        return list(self._ddl)

    @property
    def connection(self) -> DatabaseConnection:
        return self._connection

    def insert(
        self,
        objects: Sequence[Any],
        object_to_rows: ObjectToRows,
        refresh_enums: bool = True,
    ) -> dict[str, int]:
        """Flatten objects into rows and insert them in one transaction.

        Args:
            objects: Objects to load
            object_to_rows: Maps objects to rows per table, in schema table order
            refresh_enums: Recompute dynamic enums after loading

        Returns:
            Inserted row count per table

        Raises:
            IngestionError: If the rows do not match the schema's tables
        """
        rows_by_table = object_to_rows(objects)
        return self.insert_rows(rows_by_table, refresh_enums=refresh_enums)

    def insert_rows(
        self, rows_by_table: RowsByTable, refresh_enums: bool = True
    ) -> dict[str, int]:
        """Insert pre-flattened rows, one list of rows per table in schema order."""
        rows_by_table = list(rows_by_table)
        tables = self._schema.tables
        if len(rows_by_table) != len(tables):
            raise IngestionError(
                f"Expected rows for {len(tables)} table(s) "
                f"({', '.join(self._schema.table_names)}), got {len(rows_by_table)}.",
                {"expected_tables": self._schema.table_names},
            )

        counts: dict[str, int] = {}
        dialect = self._connection.engine.dialect
        with self._connection.engine.begin() as conn:
            for table, rows in zip(tables, rows_by_table, strict=True):
                width = len(table.columns)
                params: list[dict[str, Any]] = []
                for i, row in enumerate(rows):
                    if len(row) != width:
                        raise IngestionError(
                            f"Row {i} for table '{table.name}' has {len(row)} value(s), "
                            f"expected {width} ({', '.join(table.column_names)}).",
                            {"table_name": table.name, "row_index": i},
                        )
                    params.append({f"c{j}": value for j, value in enumerate(row)})

                if params:
                    columns = ", ".join(quote_identifier(c.name, dialect) for c in table.columns)
                    placeholders = ", ".join(f":c{j}" for j in range(width))
                    conn.execute(
                        text(
                            f"INSERT INTO {quote_identifier(table.name, dialect)} "
                            f"({columns}) VALUES ({placeholders})"
                        ),
                        params,
                    )
                counts[table.name] = len(params)

        logger.info(
            "Inserted rows: " + ", ".join(f"{name}={count}" for name, count in counts.items())
        )
        if refresh_enums:
            self.refresh_dynamic_enums()
        return counts

    def refresh_dynamic_enums(self) -> SchemaSet:
        """Recompute example values and ranges from the loaded data."""
        self._schema = compute_dynamic_enums(self._schema, self._connection.engine)
        return self._schema

    def build_prompt(self, question: str) -> list[ChatMessage]:
        """Conversation that ``ask`` would send first, for inspection."""
        return PromptBuilder(self._options.dialect).build(question, self._schema)

    def ask(
        self,
        question: str,
        options: AskOptions | None = None,
        llm: LLMCall | None = None,
    ) -> QueryResult:
        """Answer a natural-language question.

        Args:
            question: Natural-language question
            options: Overrides the instance's default options
            llm: Overrides the instance's LLM call

        Returns:
            QueryResult with SQL, explanation, columns and rows

        Raises:
            TransportError: If the LLM call fails
            BudgetExceededError: If every attempt failed
        """
        call = llm or self._llm
        if call is None:
            raise WishfulSearchError(
                "No LLM configured. Pass llm= to WishfulSearch() or to ask(), "
                "e.g. wishfulsearch.llm.get_adapter('openai')."
            )
        return Orchestrator(options or self._options).ask(
            question, self._schema, call, self._connection
        )

    def execute_sql(self, sql: str, row_limit: int | None = None) -> TabularResult:
        """Run a read-only statement directly, bypassing the LLM."""
        executor = QueryExecutor(row_limit=row_limit or self._options.row_limit)
        return executor.execute(sql, self._connection)

    def close(self) -> None:
        """Close the database connection."""
        self._connection.close()

    def __enter__(self) -> WishfulSearch:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
