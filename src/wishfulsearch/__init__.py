"""WishfulSearch - Natural-language search over JSON objects.

Objects are flattened into an embedded SQLite database described by a schema
set. Questions are turned into SQL by an LLM, run read-only, and corrected
in a bounded retry loop when the SQL fails.

Example:
    from wishfulsearch import ColumnSpec, SchemaSet, TableSpec, WishfulSearch
    from wishfulsearch.llm import get_adapter

    schema = SchemaSet.from_tables(
        [
            TableSpec(
                name="flights",
                columns=[
                    ColumnSpec(name="id", sql_type="TEXT", visible_to_llm=False),
                    ColumnSpec(name="destination", sql_type="TEXT", description="IATA code"),
                    ColumnSpec(name="departure_date", sql_type="TEXT", description="ISO date"),
                ],
            )
        ]
    )

    ws = WishfulSearch(schema, llm=get_adapter("openai"))
    ws.insert(flights, lambda objs: [[[f["id"], f["to"], f["date"]] for f in objs]])

    result = ws.ask("flights to Paris in March")
    print(result.sql, result.explanation, result.rows)

    # Suggest a schema set for new data
    from wishfulsearch.analyze import analyze_object

    analysis = analyze_object(flights[0], get_adapter("openai"), save_dir="reports")
"""

from wishfulsearch.core.engine import WishfulSearch
from wishfulsearch.core.types import (
    AskOptions,
    CharLimitedEnum,
    ChatMessage,
    ColumnSpec,
    ExhaustiveEnum,
    ForeignKeyRef,
    MessageRole,
    MinMaxEnum,
    QueryResult,
    SchemaSet,
    TableSpec,
    TabularResult,
    ValueRange,
)
from wishfulsearch.exceptions import (
    AnalysisError,
    BudgetExceededError,
    ConnectionError,
    ExecutionError,
    ExecutionErrorKind,
    ExtractionError,
    ExtractionErrorKind,
    IngestionError,
    SchemaError,
    TransportError,
    WishfulSearchError,
)
from wishfulsearch.query import (
    Orchestrator,
    PromptBuilder,
    QueryExecutor,
    QueryValidator,
    ResponseExtractor,
    ValidationResult,
    ask,
    build_prompt,
)
from wishfulsearch.schema import compute_dynamic_enums, generate_ddl, validate_schema

__version__ = "0.1.0"

__all__ = [
    # Main class
    "WishfulSearch",
    # Types
    "ColumnSpec",
    "ForeignKeyRef",
    "ValueRange",
    "ExhaustiveEnum",
    "CharLimitedEnum",
    "MinMaxEnum",
    "TableSpec",
    "SchemaSet",
    "AskOptions",
    "ChatMessage",
    "MessageRole",
    "TabularResult",
    "QueryResult",
    # Schema
    "validate_schema",
    "generate_ddl",
    "compute_dynamic_enums",
    # Query synthesis
    "PromptBuilder",
    "ResponseExtractor",
    "QueryValidator",
    "ValidationResult",
    "QueryExecutor",
    "Orchestrator",
    "build_prompt",
    "ask",
    # Exceptions
    "WishfulSearchError",
    "ConnectionError",
    "SchemaError",
    "IngestionError",
    "AnalysisError",
    "TransportError",
    "ExtractionError",
    "ExtractionErrorKind",
    "ExecutionError",
    "ExecutionErrorKind",
    "BudgetExceededError",
]
