"""Prompt builder for natural-language-to-SQL synthesis.

Renders the LLM-visible part of a schema set plus the user's question into a
conversation. Columns with ``visible_to_llm = False`` never appear in the
rendered text: not their names, descriptions or example values.

The system turn contains:
- The dialect and the read-only constraint
- Every table with at least one visible column, one line per column
- Notes for hidden tables that visible columns link to
- The output format (one ```sql fence plus a short explanation)
"""

from __future__ import annotations

from collections.abc import Sequence

from wishfulsearch.core.types import ChatMessage, ColumnSpec, SchemaSet, TableSpec
from wishfulsearch.exceptions import ExecutionError, ExtractionError

SYSTEM_TEMPLATE = """You are an expert {dialect} analyst. Write exactly one read-only query \
(a SELECT or WITH statement) that answers the user's question against the tables below.

TABLES:
{tables}

GUIDELINES:
{guidelines}

Respond with the query inside a single ```sql fenced block, followed by a short \
plain-language explanation of what it returns, outside the block."""

GUIDELINES = [
    "Use only the tables and columns listed above; do not invent names.",
    "Join child tables to their parent through the listed references.",
    "Prefer the listed example values and ranges when filtering.",
    "Return only the columns needed to answer the question.",
    "Never modify data: no INSERT, UPDATE, DELETE or DDL.",
]

CORRECTION_TEMPLATE = """The previous query failed.

SQL:
```sql
{sql}
```

Error: {error}

Fix the query and respond again with one ```sql fenced block and a short explanation."""

NO_SQL_TEMPLATE = """Your previous response could not be used: {error}

Respond again with exactly one ```sql fenced block containing the query, \
followed by a short explanation."""


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _single_line(text: str) -> str:
    return " ".join(text.split())


class PromptBuilder:
    """Builds the query-synthesis conversation for a schema set."""

    def __init__(self, dialect: str = "SQLite") -> None:
        """Initialize the prompt builder.

        Args:
            dialect: SQL dialect named in the instructions
        """
        self._dialect = dialect

    def build(self, question: str, schema: SchemaSet) -> list[ChatMessage]:
        """Build the conversation prefix for a question.

        Args:
            question: Natural-language question, sent verbatim as the last turn
            schema: Schema set to expose (visible columns only)

        Returns:
            [system turn with schema and instructions, user turn with question]
        """
        system = SYSTEM_TEMPLATE.format(
            dialect=self._dialect,
            tables=self.render_schema(schema),
            guidelines="\n".join(f"{i}. {g}" for i, g in enumerate(GUIDELINES, start=1)),
        )
        return [ChatMessage.system(system), ChatMessage.user(question)]

    def render_schema(self, schema: SchemaSet) -> str:
        """Render visible tables and hidden link targets as text."""
        main_name = schema.main.name
        blocks: list[str] = []
        hidden_targets: dict[str, list[str]] = {}

        for table in schema.tables:
            visible = table.visible_columns
            if not visible:
                continue
            header = f"Table {table.name}"
            if table.name == main_name:
                header += " (main table)"
            lines = [header]
            for column in visible:
                lines.append(f"- {self.render_column(column, schema)}")
                fk = column.foreign_key
                if fk is not None:
                    target = schema.get_table(fk.table)
                    if target is not None and not target.visible_columns:
                        hidden_targets.setdefault(fk.table, []).append(
                            f"{table.name}.{column.name}"
                        )
            blocks.append("\n".join(lines))

        for target, referrers in hidden_targets.items():
            blocks.append(
                f"Table {target} exists but has no queryable columns; "
                f"referenced by {', '.join(referrers)}."
            )

        return "\n\n".join(blocks)

    def render_column(self, column: ColumnSpec, schema: SchemaSet) -> str:
        """Render one visible column as ``name: type - description [hints]``."""
        line = f"{column.name}: {column.sql_type}"
        if column.description:
            line += f" - {_single_line(column.description)}"

        hints: list[str] = []
        fk = column.foreign_key
        if fk is not None:
            hints.append(f"[references {self._render_reference(fk.table, fk.column, schema)}]")
        if column.example_values:
            examples = ", ".join(_quote(v) for v in column.example_values)
            hints.append(f"[examples: {examples}]")
        if column.value_range is not None:
            rng = column.value_range
            hint = f"[range: {rng.min}..{rng.max}"
            if rng.exceptions:
                hint += f", also: {', '.join(_quote(e) for e in rng.exceptions)}"
            hints.append(hint + "]")

        if hints:
            line += " " + " ".join(hints)
        return line

    def _render_reference(self, table_name: str, column_name: str, schema: SchemaSet) -> str:
        table: TableSpec | None = schema.get_table(table_name)
        column = table.get_column(column_name) if table is not None else None
        if column is not None and column.visible_to_llm:
            return f"{table_name}.{column_name}"
        return table_name

    def correction(self, error: ExtractionError | ExecutionError) -> ChatMessage:
        """Corrective user turn feeding an attempt's failure back to the model."""
        if isinstance(error, ExecutionError) and error.sql:
            return ChatMessage.user(CORRECTION_TEMPLATE.format(sql=error.sql, error=error.message))
        return ChatMessage.user(NO_SQL_TEMPLATE.format(error=error.message))


def build_prompt(
    question: str,
    schema: SchemaSet,
    dialect: str = "SQLite",
) -> list[ChatMessage]:
    """Convenience function to build a query-synthesis conversation.

    Args:
        question: Natural-language question
        schema: Schema set to expose
        dialect: SQL dialect named in the instructions

    Returns:
        Conversation prefix ready for an LLM call
    """
    return PromptBuilder(dialect).build(question, schema)


def render_conversation(messages: Sequence[ChatMessage]) -> str:
    """Render a conversation as readable text (for CLI inspection and reports)."""
    return "\n\n".join(f"[{m.role}]\n{m.content}" for m in messages)
