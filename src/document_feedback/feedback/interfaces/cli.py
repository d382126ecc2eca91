"""
Command-line implementation of the feedback notifier.

Notices are printed with Rich, colour-coded by kind, so the outcome of a
feedback action is visible at a glance in the terminal.
"""

from rich.console import Console

from document_feedback.feedback.interface import FeedbackNotifier


class ConsoleNotifier(FeedbackNotifier):
    """Prints feedback notices to the terminal."""

    def __init__(self, console: Console = None):
        self._console = console or Console()

    def success(self, message: str) -> None:
        self._console.print(f"[bold green]✓[/bold green] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[bold red]✗ {message}[/bold red]")

    def info(self, message: str) -> None:
        self._console.print(f"[dim]{message}[/dim]")
