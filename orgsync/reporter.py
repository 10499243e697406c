"""
Report output for orgsync.

Keeps the user-visible report separate from diagnostic logging:
info and plain lines go to stdout, warnings and errors go to stderr,
each with a distinguishable prefix.
"""

import os
from typing import Optional

from rich.console import Console
from rich.markup import escape


class Reporter:
    """Writes report lines to stdout/stderr consoles."""

    def __init__(
        self,
        stdout: Optional[Console] = None,
        stderr: Optional[Console] = None,
    ):
        """
        Initialize Reporter.

        Args:
            stdout: Console for info/log lines (default: sys.stdout)
            stderr: Console for warnings/errors (default: sys.stderr)
        """
        no_color = os.environ.get('NO_COLOR') is not None
        self.stdout = stdout or Console(highlight=False, no_color=no_color)
        self.stderr = stderr or Console(stderr=True, highlight=False, no_color=no_color)

    def log(self, message: str) -> None:
        """Plain line on stdout, for output meant to be piped."""
        self.stdout.print(message, markup=False, highlight=False, soft_wrap=True)

    def info(self, message: str, markup: bool = False) -> None:
        body = message if markup else escape(message)
        self.stdout.print(f"[blue]info[/blue] {body}", soft_wrap=True)

    def warn(self, message: str) -> None:
        self.stderr.print(f"[yellow]warning[/yellow] {escape(message)}", soft_wrap=True)

    def error(self, message: str) -> None:
        self.stderr.print(f"[red]error[/red] {escape(message)}", soft_wrap=True)
