"""
Simple logging system for glyphloop.

Standard output belongs to the animation, so log lines go to stderr through a
rich Console and, optionally, to a log file.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class SimpleLogger:
    """Simple logger that writes to stderr and file.

    Args:
        log_file: Optional path that every message is appended to
        verbose: When False, only warnings and errors reach the console
        console: Console to print to; defaults to one bound to stderr
    """

    def __init__(self, log_file: Optional[Path] = None, verbose: bool = False, console: Optional[Console] = None):
        self.log_file = log_file
        self.verbose = verbose
        self.console = console or Console(stderr=True, highlight=False)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, 'a', encoding='utf-8') as f:
                f.write(f"\n{'='*60}\n")
                f.write(f"Session started: {datetime.now().isoformat()}\n")
                f.write(f"{'='*60}\n")

    def log(self, message: str, prefix: str = "", style: str = "", always: bool = False) -> None:
        """Log a message to console and file.

        Args:
            message: The message to log
            prefix: Optional prefix like [INFO], [ERROR], etc.
            style: Rich style for the prefix
            always: Print even when not verbose
        """
        timestamp = datetime.now().strftime("%H:%M:%S")

        if prefix:
            formatted = f"[{timestamp}] {prefix} {message}"
        else:
            formatted = f"[{timestamp}] {message}"

        if self.verbose or always:
            if prefix and style:
                self.console.print(f"[dim]\\[{timestamp}][/] [{style}]{escape(prefix)}[/] {escape(message)}")
            else:
                self.console.print(escape(formatted))

        if self.log_file:
            try:
                with open(self.log_file, 'a', encoding='utf-8') as f:
                    f.write(formatted + '\n')
            except OSError:
                pass  # Don't fail on logging errors

    def table(self, headers: List[str], rows: List[List[str]], title: str = "") -> None:
        """Print a table.

        Args:
            headers: Column headers
            rows: Table rows
            title: Optional table title
        """
        if not headers or not rows:
            return

        if self.verbose:
            table = Table(title=title or None, show_header=True, header_style="bold magenta")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*[str(cell) for cell in row])
            self.console.print(table)

        if self.log_file:
            widths = [len(h) for h in headers]
            for row in rows:
                for i, cell in enumerate(row):
                    if i < len(widths):
                        widths[i] = max(widths[i], len(str(cell)))
            separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
            body = [separator, "|" + "|".join(f" {h:<{w}} " for h, w in zip(headers, widths)) + "|", separator]
            for row in rows:
                body.append("|" + "|".join(f" {str(cell):<{w}} " for cell, w in zip(row, widths)) + "|")
            body.append(separator)
            try:
                with open(self.log_file, 'a', encoding='utf-8') as f:
                    f.write("\n".join(body) + "\n")
            except OSError:
                pass

    def success(self, message: str) -> None:
        """Log a success message."""
        self.log(message, prefix="[SUCCESS]", style="bold green")

    def error(self, message: str) -> None:
        """Log an error message."""
        self.log(message, prefix="[ERROR]", style="bold red", always=True)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.log(message, prefix="[WARNING]", style="yellow", always=True)

    def info(self, message: str) -> None:
        """Log an info message."""
        self.log(message, prefix="[INFO]", style="cyan")
