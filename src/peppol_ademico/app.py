"""Typer application and CLI entry point for ademico.

This module wires the top-level Typer application and registers the
built-in sub-commands (``token``, ``notifications``, ``submit``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~peppol_ademico.exceptions.AdemicoError`
instances exit with their ``exit_code``; other exceptions are written to a
crash log under the data directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from peppol_ademico import __version__
from peppol_ademico.commands.config import config_app
from peppol_ademico.commands.notifications import notifications_app
from peppol_ademico.commands.submit import submit_command
from peppol_ademico.commands.token import token_app
from peppol_ademico.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="ademico",
    help="Client for the Ademico Peppol document-exchange API.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(token_app, name="token", help="Bearer token management.")
app.add_typer(notifications_app, name="notifications", help="List and decode notifications.")
app.add_typer(config_app, name="config", help="Settings management.")
app.command("submit")(submit_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ademico {__version__}")
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
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Settings file (default: XDG config dir)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~peppol_ademico.output.OutputManager`,
    configures :mod:`logging` (``WARNING``, or ``DEBUG`` with
    ``--verbose``) and stores the settings path in ``ctx.obj``.
    """
    from peppol_ademico.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    from peppol_ademico.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``ademico`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
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
        from peppol_ademico.exceptions import AdemicoError
        from peppol_ademico.output import error

        if isinstance(exc, AdemicoError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
