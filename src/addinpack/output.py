"""Terminal output for addinpack.

Two streams, following clig.dev:

* **stdout** carries the result only: the table of archived entries, or
  the JSON result object with ``--json``. Scripts can pipe it safely.
* **stderr** carries everything else: build progress, state transitions in
  verbose mode, captured toolchain output, warnings and errors.

Colour is dropped when ``NO_COLOR`` is set, ``TERM=dumb``, or ``--no-color``
is passed. ``AUTO`` format becomes Rich on an interactive terminal and plain
text otherwise.

Pipeline modules never hold an :class:`OutputManager`; they call the
module-level helpers (:func:`info`, :func:`debug`, :func:`progress`, ...),
which forward to the instance installed by :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Result formats selectable from the command line."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes results to stdout and diagnostics to stderr.

    Args:
        format: Result format. ``AUTO`` is resolved once, here.
        no_color: Force uncoloured output.
        quiet: Hide info, success, suggestion and progress messages.
        verbose: Show debug messages (commands, state changes, toolchain
            output).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # -- stdout ---------------------------------------------------------

    def print_data(self, text: str) -> None:
        """Write *text* to stdout unchanged."""
        print(text, file=sys.stdout, flush=True)

    def print_json(self, data: Any) -> None:
        """Write *data* as indented JSON; highlighted in Rich mode."""
        rendered = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(rendered, "json", theme="monokai", word_wrap=True))
        else:
            self.print_data(rendered)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows under *headers*.

        JSON mode emits a list of objects keyed by header, plain mode emits
        tab-separated lines with a header line, and Rich mode draws a table
        captioned with *title*.
        """
        if self._format == OutputFormat.JSON:
            self.print_json([dict(zip(headers, row)) for row in rows])
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # -- stderr ---------------------------------------------------------

    def _emit(self, plain: str, styled: str, *, markup: bool = True, style: Optional[str] = None) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(styled, markup=markup, style=style)

    def info(self, message: str) -> None:
        """Status line, hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Always shown, even with ``--quiet``."""
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Always shown, even with ``--quiet``."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        """Hint about what to do next, hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(f"→ {message}", f"[dim]→ {message}[/dim]")

    def debug(self, message: str) -> None:
        """Verbose-only line.

        Compiler diagnostics are full of square brackets (``error[E0425]``),
        so the message is never parsed as Rich markup.
        """
        if self._verbose:
            text = f"[debug] {message}"
            self._emit(text, text, markup=False, style="dim")

    def progress(self, message: str) -> None:
        """Per-target progress, shown only on a terminal and hidden by ``--quiet``."""
        if not self._quiet and _is_tty():
            self._emit(message, f"[dim]{message}[/dim]")

    def tail(self, text: str, limit: int, *, as_error: bool = False) -> None:
        """Print the last *limit* lines of captured process output, indented.

        With *as_error* the lines are shown even under ``--quiet``.
        """
        if self._quiet and not as_error:
            return
        for line in text.splitlines()[-limit:]:
            self._emit(f"  {line}", f"  {line}", markup=False)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# -- global instance ----------------------------------------------------

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_json(data: Any) -> None:
    get_output().print_json(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def progress(message: str) -> None:
    get_output().progress(message)


def tail(text: str, limit: int, *, as_error: bool = False) -> None:
    get_output().tail(text, limit, as_error=as_error)
