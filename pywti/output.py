"""Terminal output for pywti."""

from typing import Optional

import httpx
from rich.console import Console
from rich.markup import escape

# Width of the file path column in transfer listings
PATH_COLUMN_WIDTH = 50


def format_response(response: httpx.Response) -> str:
    """Return a human-readable status line for a response.

    Args:
        response: Completed response

    Returns:
        Status line such as "200 OK" or "304 Not Modified"
    """
    return f"{response.status_code} {response.reason_phrase}".rstrip()


class OutputFormatter:
    """Formats messages and transfer listings for the terminal."""

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        """Initialize output formatter.

        Args:
            quiet: Suppress non-essential output
            console: Optional rich console (defaults to stdout)
        """
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = console or Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        """Print a plain message unless quiet."""
        if not self.quiet:
            self.console.print(escape(message))

    def info(self, message: str) -> None:
        """Print an informational message unless quiet."""
        if not self.quiet:
            self.console.print(f"[cyan]{escape(message)}[/cyan]")

    def success(self, message: str) -> None:
        """Print a success message unless quiet."""
        if not self.quiet:
            self.console.print(f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self.err_console.print(f"[yellow]Warning: {escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        """Print an error message."""
        self.err_console.print(f"[red]{escape(message)}[/red]")

    def status_style(self, status: str, success: bool) -> str:
        """Pick the markup style for a transfer status."""
        if not success:
            return "red"
        if status.startswith(("4", "5")):
            return "red"
        if status == "Skipped" or status.startswith("304"):
            return "green"
        return "green bold"

    def columns(self, path: str, checksums: str, status: str, success: bool) -> None:
        """Print one transfer line: path, checksum pair and status.

        Args:
            path: Local file path (prefixed with ``*`` when not fresh)
            checksums: Checksum pair, e.g. ``[aaf4c]..[12ab3]``
            status: Response status line, "Skipped" or an error message
            success: Whether the transfer succeeded
        """
        if self.quiet and success:
            return
        style = self.status_style(status, success)
        self.console.print(
            f" {escape(path.ljust(PATH_COLUMN_WIDTH))}  {escape(checksums)}  "
            f"[{style}]{escape(status)}[/{style}]"
        )
