"""WishfulSearch CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import wishfulsearch
from wishfulsearch.cli.context import CLIContext, get_provider

# Create main Typer app
app = typer.Typer(
    name="wishful",
    help="WishfulSearch CLI - Natural-language search over JSON objects",
    no_args_is_help=True,
)

# Store CLI context globally (will be set in callback)
state: dict[str, CLIContext] = {}


@app.callback()
def main_callback(
    ctx: typer.Context,
    provider: Annotated[
        str | None,
        typer.Option(
            "--provider",
            "-p",
            envvar="WISHFUL_LLM_PROVIDER",
            help="LLM provider (openai, azure-openai, anthropic)",
        ),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option(
            "--model",
            "-m",
            envvar="WISHFUL_LLM_MODEL",
            help="Model name (deployment name for azure-openai)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log prompts, retries and stages to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli_ctx = CLIContext(
        json_output=json_output,
        provider=get_provider(provider),
        model=model,
        verbose=verbose,
    )

    # Store in Typer context for command access
    ctx.obj = cli_ctx
    state["cli_ctx"] = cli_ctx


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"WishfulSearch v{wishfulsearch.__version__}")


# Register command groups
from wishfulsearch.cli.commands import analyze, ask, schema  # noqa: E402

app.add_typer(schema.app, name="schema")

# Register ask and analyze as standalone commands (not groups)
app.command(name="ask")(ask.ask_command)
app.command(name="analyze")(analyze.analyze_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
