"""Natural-language query command."""

from typing import Annotated

import typer

from wishfulsearch.cli.context import CLIContext
from wishfulsearch.cli.output import OutputFormatter
from wishfulsearch.cli.parsing import load_function, load_schema, read_objects
from wishfulsearch.core.engine import WishfulSearch
from wishfulsearch.core.types import AskOptions


def ask_command(
    ctx: typer.Context,
    schema_path: Annotated[str, typer.Argument(help="Schema set JSON file")],
    data_path: Annotated[
        str,
        typer.Argument(help="Objects to load (JSON array, JSON object or JSONL)"),
    ],
    question: Annotated[str, typer.Argument(help="Natural-language question")],
    rows_module: Annotated[
        str | None,
        typer.Option(
            "--rows-module",
            "-r",
            help="object_to_rows function as module:func or file.py:func. "
            "Without it, DATA must already hold rows per table.",
        ),
    ] = None,
    max_retries: Annotated[
        int,
        typer.Option("--max-retries", min=0, help="Corrective retries after a failed attempt"),
    ] = 2,
    row_limit: Annotated[
        int,
        typer.Option("--row-limit", min=1, help="Maximum rows returned"),
    ] = 1000,
) -> None:
    """Load objects into an in-memory database and answer a question about them.

    Examples:

        wishful ask flights.schema.json flights.json "flights to Paris in March" \\
            --rows-module flights_rows.py:object_to_rows
        wishful --json ask schema.json rows.json "cheapest flight" --max-retries 3
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        schema = load_schema(schema_path)
        options = AskOptions(max_retries=max_retries, row_limit=row_limit)

        with WishfulSearch(schema, llm=cli_ctx.get_llm(), options=options) as ws:
            if rows_module:
                ws.insert(read_objects(data_path), load_function(rows_module))
            else:
                ws.insert_rows(read_objects(data_path))
            result = ws.ask(question)

        formatter.print_query_result(result)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
