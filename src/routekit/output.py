"""Terminal output for the ``routekit`` CLI.

Data goes to stdout (route tables, response bodies); everything else (status
lines, warnings, errors, debug notes) goes to stderr so that piping
``routekit request ... | jq`` only ever sees the body.

Rich formatting is used when stdout is a terminal and colour is not disabled
by ``--no-color``, ``NO_COLOR`` or ``TERM=dumb``; plain text otherwise.
``--json`` forces machine-readable output.

The CLI installs one :class:`OutputManager` per invocation with
:func:`set_output`; library code never prints.
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

from routekit.models import MediaType, ResponseDescriptor


class OutputFormat(str, Enum):
    """How data written to stdout is rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable terminal and
    ``PLAIN`` everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class OutputManager:
    """Send CLI data to stdout and diagnostics to stderr.

    Args:
        format: Requested output format; ``AUTO`` is resolved here.
        no_color: Disable colour and Rich markup.
        quiet: Drop informational messages.
        verbose: Show debug messages (and response headers).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        no_color = no_color or _should_disable_color()
        if format is OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN

        self._format = format
        self._plain_diagnostics = no_color
        self._quiet, self._verbose = quiet, verbose
        self._console = Console(
            file=sys.stdout, no_color=no_color, force_terminal=format is OutputFormat.RICH
        )
        self._err_console = Console(file=sys.stderr, no_color=no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # -- stdout ----------------------------------------------------------

    def print_response(self, response: ResponseDescriptor) -> None:
        """Print the result of one request.

        ``--json`` prints status, headers and body as a single document.
        Otherwise the status line is a diagnostic, headers are debug output,
        and only a non-empty body reaches stdout.
        """
        if self._format is OutputFormat.JSON:
            document = {
                "status": response.status,
                "headers": response.headers,
                "body": response.body,
            }
            self.print_data(_to_json(document))
            return

        verb = response.method.value.upper() if response.method else None
        self.info(" ".join(part for part in (f"HTTP {response.status}", verb, response.url) if part))
        for name, value in response.headers.items():
            self.debug(f"{name}: {value}")
        if response.body not in (None, ""):
            self.format_data(response.body, response.content_type)

    def format_data(self, data: Any, content_type: Optional[str] = None) -> None:
        """Render a parsed body to stdout.

        Structures are pretty-printed JSON (syntax-highlighted in Rich mode);
        text is printed as is, highlighted only when it is declared JSON.
        """
        structured = isinstance(data, (dict, list))
        if self._format is OutputFormat.JSON:
            self.print_data(_to_json(data))
            return
        if self._format is OutputFormat.RICH and (
            structured or MediaType.from_content_type(content_type) is MediaType.JSON
        ):
            text = _to_json(data) if structured else str(data)
            self._console.print(Syntax(text, "json", theme="monokai", word_wrap=True))
            return
        self.print_data(_to_json(data) if structured else str(data))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self, headers: list[str], rows: list[list[str]], title: Optional[str] = None
    ) -> None:
        """Print *rows* under *headers*.

        JSON mode emits one object per row keyed by header; plain mode emits
        tab-separated lines with a header line; Rich mode draws a table with
        *title*.
        """
        if self._format is OutputFormat.JSON:
            self.print_data(_to_json([dict(zip(headers, row)) for row in rows]))
        elif self._format is OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*row)
            self._console.print(table)

    # -- stderr ----------------------------------------------------------

    def info(self, message: str) -> None:
        """Informational message; ``--quiet`` drops it."""
        if self._quiet:
            return
        self._diagnostic(message, message)

    def warning(self, message: str) -> None:
        self._diagnostic(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Always shown."""
        self._diagnostic(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")

    def _diagnostic(self, plain: str, markup: str) -> None:
        if self._plain_diagnostics:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._err_console.print(markup, highlight=False)


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# -- process-wide manager (installed by the CLI callback) ----------------

_current: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _current
    if _current is None:
        _current = OutputManager()
    return _current


def set_output(output: OutputManager) -> None:
    global _current
    _current = output


def reset_output() -> None:
    """Drop the installed manager; the next :func:`get_output` builds a new one."""
    global _current
    _current = None


def info(message: str) -> None:
    get_output().info(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
