"""Output for the ``jsonshelf`` admin CLI.

Cached payloads, keys, namespace names and statistics go to **stdout**;
status and error messages go to **stderr**, so ``jsonshelf get ... > out.json``
captures exactly the payload.

Three renderings are supported:

* ``json`` -- payloads and statistics as JSON documents, for scripts.
* ``plain`` -- one line per value (payloads as compact JSON, statistics as
  tab-separated rows). The default when stdout is not a terminal.
* ``rich`` -- highlighted JSON and a statistics table. The default on a
  colour-capable terminal.

``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all disable colour. The cache
library itself never prints; it logs through :mod:`logging`.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from jsonshelf.models import NamespaceStats


class OutputFormat(str, Enum):
    """Rendering selected by ``--json``/``--plain``; ``AUTO`` picks by terminal."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


STATS_COLUMNS = ("namespace", "entries", "max_entries", "ttl_seconds", "bytes", "oldest", "newest")


def _format_mtime(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return datetime.fromtimestamp(value).isoformat(timespec="seconds")


def _stats_row(stats: NamespaceStats) -> list[str]:
    return [
        stats.namespace,
        str(stats.entries),
        str(stats.max_entries),
        f"{stats.ttl_seconds:g}",
        str(stats.total_bytes),
        _format_mtime(stats.oldest_mtime),
        _format_mtime(stats.newest_mtime),
    ]


class OutputManager:
    """Routes CLI output to stdout/stderr in the selected rendering.

    Args:
        format: Desired rendering. ``AUTO`` becomes ``RICH`` on an
            interactive terminal with colour enabled, ``PLAIN`` otherwise.
        no_color: Disable colour and Rich markup.
        quiet: Suppress ``info`` and ``success`` messages. Errors and data
            are always written.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved rendering (never ``AUTO``)."""
        return self._format

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write one line of raw data (a key, a namespace name) to stdout."""
        print(text, file=sys.stdout, flush=True)

    def format_response(self, payload: Any) -> None:
        """Write a cached payload to stdout.

        Payloads are JSON-native, so every rendering is JSON: indented for
        ``json``, one compact line for ``plain`` (bare text for strings),
        and syntax-highlighted for ``rich``.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            if isinstance(payload, str):
                self.print_data(payload)
            else:
                self.print_data(
                    json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
                )
        else:
            text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def print_stats(self, all_stats: Sequence[NamespaceStats], title: Optional[str] = None) -> None:
        """Write namespace statistics to stdout.

        ``json`` emits the models themselves (numbers stay numbers, mtimes
        stay epoch seconds); ``plain`` emits a header and one tab-separated
        row per namespace; ``rich`` draws a table and marks namespaces whose
        directory is unavailable.
        """
        if self._format == OutputFormat.JSON:
            records = [s.model_dump(mode="json") for s in all_stats]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(STATS_COLUMNS))
            for s in all_stats:
                self.print_data("\t".join(_stats_row(s)))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for column in STATS_COLUMNS:
            numeric = column in ("entries", "max_entries", "ttl_seconds", "bytes")
            table.add_column(column, justify="right" if numeric else "left")
        for s in all_stats:
            row = _stats_row(s)
            if not s.available:
                row[0] = f"{row[0]} [red](disabled)[/red]"
            elif s.entries >= s.max_entries:
                row[1] = f"[yellow]{row[1]}[/yellow]"
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Status message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, "")

    def success(self, message: str) -> None:
        """Completion message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._diagnostic(message, "[green]{}[/green]")

    def error(self, message: str) -> None:
        """Error message. Never suppressed."""
        self._diagnostic(f"Error: {message}", "[bold red]{}[/bold red]")

    def _diagnostic(self, message: str, markup: str) -> None:
        if self._no_color or not markup:
            print(message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(escape(message)), highlight=False)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance, installed by the app callback
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed instance (used by tests between CLI invocations)."""
    global _output
    _output = None


def format_response(payload: Any) -> None:
    get_output().format_response(payload)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_stats(all_stats: Sequence[NamespaceStats], title: Optional[str] = None) -> None:
    get_output().print_stats(all_stats, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)
