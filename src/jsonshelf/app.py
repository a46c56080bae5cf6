"""Typer application and CLI entry point for the ``jsonshelf`` admin command.

The admin CLI inspects and maintains cache namespaces on disk: listing
them, showing statistics, reading, writing and invalidating single entries,
clearing namespaces, deriving keys, and editing the global config file.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`jsonshelf.config`: Root and configuration resolution.
    :mod:`jsonshelf.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from jsonshelf import __version__
from jsonshelf.commands.cache import (
    clear_command,
    get_command,
    invalidate_command,
    key_command,
    namespaces_command,
    put_command,
    stats_command,
)
from jsonshelf.commands.config import config_app
from jsonshelf.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="jsonshelf",
    help="Inspect and maintain file-backed API response caches.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("namespaces")(namespaces_command)
app.command("stats")(stats_command)
app.command("get")(get_command)
app.command("put")(put_command)
app.command("invalidate")(invalidate_command)
app.command("clear")(clear_command)
app.command("key")(key_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"jsonshelf {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Optional[str] = typer.Option(
        None, "--root", "-r", help="Cache root directory."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~jsonshelf.output.OutputManager` from
    CLI flags and stores shared options (``root``, ``force``) in
    ``ctx.obj``. With ``--verbose`` the library's ``logging`` output is
    routed to stderr at DEBUG level.
    """
    from jsonshelf.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from jsonshelf.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``jsonshelf`` console script.

    Unhandled :class:`~jsonshelf.exceptions.JsonShelfError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from jsonshelf.exceptions import JsonShelfError
        from jsonshelf.output import error

        if isinstance(exc, JsonShelfError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
