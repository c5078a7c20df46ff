"""Console output formatting for the pycfpages CLI."""

import json
from typing import Any, Optional

import click
from rich.console import Console


class OutputFormatter:
    """Formats messages for the terminal, or JSON for scripting.

    Informational messages are suppressed in quiet and JSON mode; errors
    always go to stderr.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console()
        self.err_console = Console(stderr=True)

    @property
    def show_info(self) -> bool:
        return not (self.quiet or self.json_output)

    @staticmethod
    def _emit(console: Console, message: str, style: Optional[str] = None) -> None:
        # Messages contain paths and URLs, never rich markup
        console.print(
            message, style=style, markup=False, highlight=False, soft_wrap=True
        )

    def print(self, message: str) -> None:
        if self.show_info:
            self._emit(self.console, message)

    def info(self, message: str) -> None:
        if self.show_info:
            self._emit(self.console, message, style="dim")

    def success(self, message: str) -> None:
        if not self.json_output:
            self._emit(self.console, message, style="green")

    def warning(self, message: str) -> None:
        if not self.quiet:
            self._emit(self.err_console, message, style="yellow")

    def error(self, message: str) -> None:
        self._emit(self.err_console, f"Error: {message}", style="bold red")

    def output_json(self, data: Any) -> None:
        """Print data as indented JSON on stdout."""
        click.echo(json.dumps(data, indent=2))
