"""
ConsoleUI - Rich-based console output for n8n-state.

Results go to stdout; diagnostics and errors go to stderr so scripts can
pipe the tables without the noise.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm


class ConsoleUI:
    """
    Rich console interface for n8n-state.
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None,
                 err_console: Optional[Console] = None):
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def print_success(self, message: str):
        if self.quiet:
            return
        self.console.print(f"[green]✓[/] {escape(message)}")

    def print_info(self, message: str):
        if self.quiet:
            return
        self.console.print(f"[blue]ℹ[/] {escape(message)}")

    def print_warning(self, message: str):
        self.err_console.print(f"[yellow]⚠[/] {escape(message)}")

    def print_error(self, message: str):
        """Display error message."""
        self.err_console.print(f"[bold red]Error:[/] {escape(message)}")

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask for confirmation. Quiet mode answers with the default."""
        if self.quiet:
            return default
        return Confirm.ask(message, default=default, console=self.console)

    @property
    def interactive(self) -> bool:
        """True when a human can answer prompts."""
        return self.console.is_terminal and not self.quiet
