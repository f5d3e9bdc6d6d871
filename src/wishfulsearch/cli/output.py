"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from wishfulsearch.core.types import QueryResult
from wishfulsearch.exceptions import WishfulSearchError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_code(self, title: str, code: str, lexer: str = "sql") -> None:
        """Print a code block with syntax highlighting, or as JSON."""
        if self.json_mode:
            print(json.dumps({"title": title, "code": code}, indent=2))
        else:
            console.print(f"\n[bold]{title}[/bold]")
            console.print(Syntax(code, lexer, word_wrap=True))

    def print_query_result(self, result: QueryResult) -> None:
        """Print SQL, explanation and rows of an answered question.

        Args:
            result: Query result to display
        """
        if self.json_mode:
            print(json.dumps(result.model_dump(), default=str, indent=2))
            return

        console.print(Syntax(result.sql, "sql", word_wrap=True))
        if result.explanation:
            console.print(f"\n{result.explanation}", style="dim")

        # Rows stay positional; joins can repeat a column name
        table = Table(
            title=f"{len(result.rows)} row(s)", show_header=True, header_style="bold magenta"
        )
        for col in result.columns:
            table.add_column(col)
        for row in result.rows:
            table.add_row(*["NULL" if value is None else str(value) for value in row])
        console.print(table)
        if result.truncated:
            console.print("Results truncated at the row limit.", style="yellow")
        if result.attempts > 1:
            console.print(f"Answered after {result.attempts} attempts.", style="dim")

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Optional details to display
        """
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, WishfulSearchError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, WishfulSearchError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, str).

        Args:
            data: Data to print
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        elif isinstance(data, str):
            console.print(data, markup=False, highlight=False)
        else:
            console.print(data)
