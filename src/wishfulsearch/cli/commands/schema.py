"""Schema set inspection commands."""

from typing import Annotated

import typer

from wishfulsearch.cli.context import CLIContext
from wishfulsearch.cli.output import OutputFormatter
from wishfulsearch.cli.parsing import load_schema
from wishfulsearch.query.prompt import build_prompt, render_conversation
from wishfulsearch.schema.ddl import generate_ddl

# Create schema subcommand group
app = typer.Typer(help="Inspect schema sets")

SchemaPath = Annotated[str, typer.Argument(help="Schema set JSON file (structured DDL)")]


@app.command("validate")
def schema_validate(ctx: typer.Context, schema_path: SchemaPath) -> None:
    """Validate a schema set file."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = load_schema(schema_path)
        formatter.print_success(
            f"Schema set is valid ({len(schema.tables)} table(s))",
            {"main_table": schema.main.name, "tables": schema.table_names},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("show")
def schema_show(ctx: typer.Context, schema_path: SchemaPath) -> None:
    """List every column with its type, link and visibility."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = load_schema(schema_path)
        rows = [
            {
                "Table": table.name,
                "Column": column.name,
                "Type": column.sql_type,
                "References": (
                    f"{column.foreign_key.table}.{column.foreign_key.column}"
                    if column.foreign_key
                    else ""
                ),
                "Visible": "✓" if column.visible_to_llm else "",
            }
            for table in schema.tables
            for column in table.columns
        ]
        formatter.print_table(
            f"Schema set (main table: {schema.main.name})",
            rows,
            ["Table", "Column", "Type", "References", "Visible"],
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("ddl")
def schema_ddl(ctx: typer.Context, schema_path: SchemaPath) -> None:
    """Print the CREATE TABLE statements for a schema set.

    Examples:

        wishful schema ddl flights.schema.json
        wishful --json schema ddl flights.schema.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        statements = generate_ddl(load_schema(schema_path))
        if cli_ctx.json_output:
            formatter.print_data({"ddl": statements})
        else:
            formatter.print_code("DDL", "\n\n".join(statements))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("prompt")
def schema_prompt(
    ctx: typer.Context,
    schema_path: SchemaPath,
    question: Annotated[str, typer.Argument(help="Natural-language question")],
    dialect: Annotated[
        str,
        typer.Option("--dialect", help="SQL dialect named in the instructions"),
    ] = "SQLite",
) -> None:
    """Print the conversation that would be sent to the LLM for a question.

    Example values and ranges are only those written in the schema file;
    no data is loaded.

    Examples:

        wishful schema prompt flights.schema.json "flights to Paris in March"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        messages = build_prompt(question, load_schema(schema_path), dialect)
        if cli_ctx.json_output:
            formatter.print_data([m.model_dump() for m in messages])
        else:
            formatter.print_data(render_conversation(messages))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
