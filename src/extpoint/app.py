"""Typer application and CLI entry point for extpoint.

The ``extpoint`` console script is developer tooling around the library:
it loads a registry from a ``package.module:attribute`` target (or from
installed entry points) and lets you list its extension points or run one
of them.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled :class:`~extpoint.exceptions.ExtpointError`
instances exit with the error's ``exit_code``.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from extpoint import __version__
from extpoint.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="extpoint",
    help="Inspect and drive extension-point plugin registries.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_LOG_FORMAT = "[debug] %(name)s: %(message)s"


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"extpoint {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route the ``extpoint`` logger to stderr at DEBUG when *verbose*."""
    logger = logging.getLogger("extpoint")
    for handler in list(logger.handlers):
        if getattr(handler, "_extpoint_cli", False):
            logger.removeHandler(handler)
    if not verbose:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._extpoint_cli = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


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
    group: Optional[str] = typer.Option(
        None, "--group", "-g", help="Entry-point group to use for discovery."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~extpoint.output.OutputManager` from CLI
    flags (falling back to the configured ``output.format``), configures
    logging, and stores shared options in ``ctx.obj``.
    """
    from extpoint.config import load_global_config
    from extpoint.exceptions import ConfigError
    from extpoint.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        try:
            fmt = OutputFormat(load_global_config().output.format)
        except (ConfigError, ValueError):
            fmt = OutputFormat.AUTO

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["group"] = group
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from extpoint.commands.config import config_app  # noqa: E402
from extpoint.commands.discover import discover_command  # noqa: E402
from extpoint.commands.inspect import keys_command, show_command  # noqa: E402
from extpoint.commands.run import run_command  # noqa: E402

app.command("keys")(keys_command)
app.command("show")(show_command)
app.command("run")(run_command)
app.command("discover")(discover_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``extpoint`` console script.

    :class:`~extpoint.exceptions.ExtpointError` instances escaping a
    command cause a clean exit with the error's ``exit_code``; any other
    exception (typically raised by a plugin callback) is reported and exits
    with :data:`~extpoint.exit_codes.EXIT_GENERIC_FAILURE`.
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
        from extpoint.exceptions import ExtpointError
        from extpoint.output import error

        if isinstance(exc, ExtpointError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"{type(exc).__name__}: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
