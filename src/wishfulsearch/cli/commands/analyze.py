"""Object analysis command."""

from pathlib import Path
from typing import Annotated

import typer

from wishfulsearch.analyze import analyze_object
from wishfulsearch.cli.context import CLIContext
from wishfulsearch.cli.output import OutputFormatter
from wishfulsearch.cli.parsing import read_json_file


def analyze_command(
    ctx: typer.Context,
    example_path: Annotated[str, typer.Argument(help="Example object JSON file")],
    save: Annotated[
        str | None,
        typer.Option("--save", "-s", help="Existing directory for the markdown report"),
    ] = None,
    typespec: Annotated[
        str | None,
        typer.Option("--typespec", "-t", help="File with a known typespec (skips that step)"),
    ] = None,
) -> None:
    """Suggest tables, a schema set and an object_to_rows function for an example.

    Everything produced is LLM-generated; review the code before running it.

    Examples:

        wishful analyze flight.json --save reports/
        wishful --json analyze flight.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        example = read_json_file(example_path)
        existing = Path(typespec).read_text() if typespec else None
        result = analyze_object(example, cli_ctx.get_llm(), save, existing)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if cli_ctx.json_output:
        formatter.print_data(result.to_dict())
    else:
        if result.ddl:
            formatter.print_code("DDL", result.ddl)
        if result.object_to_rows:
            formatter.print_code("object_to_rows", result.object_to_rows, "python")
        if result.report_path:
            formatter.print_success("Analysis report saved", {"path": result.report_path})
        for error in result.errors:
            formatter.print_data(f"Warning: {error}")

    if result.errors:
        raise typer.Exit(code=1)
