"""Terminal output with rich formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from sauce_reporter.reporters.sauce import FlushOutcome

if TYPE_CHECKING:
    from sauce_reporter.models.session import Session
    from sauce_reporter.reporters.sauce import FlushResult

console = Console()

_OUTCOME_STYLES = {
    FlushOutcome.UPLOADED: "green",
    FlushOutcome.SKIPPED: "yellow",
    FlushOutcome.EMPTY: "dim",
    FlushOutcome.FAILED: "red",
}


class CLIReporter:
    """Rich terminal output for upload runs."""

    def __init__(self, console_: Console | None = None) -> None:
        self.console = console_ or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_upload_summary(self, rows: list[tuple[Session, FlushResult]]) -> None:
        """Print one row per flushed session."""
        table = Table(title="Sauce Labs uploads")
        table.add_column("Spec", style="cyan")
        table.add_column("Browser")
        table.add_column("Tests", justify="right")
        table.add_column("Result")
        table.add_column("Job")

        for session, result in rows:
            style = _OUTCOME_STYLES[result.outcome]
            status = "passed" if session.passed else "failed"
            table.add_row(
                session.spec_path or "-",
                session.browser.pretty_user_agent or session.browser.name,
                str(len(session.tests)),
                f"[{style}]{result.outcome.value}[/{style}] ({status})",
                result.url or (str(result.error) if result.error else "-"),
            )

        self.console.print(table)


reporter = CLIReporter()
