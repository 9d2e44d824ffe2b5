"""Command-line entry point for feature-env."""

from __future__ import annotations

import logging
import os
import sys

import typer

from feature_env import __version__

LOG_ENV_VAR = "FEATURE_ENV_LOG"
_PACKAGE_LOGGER = "feature_env"
_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
# indexed by the number of -v flags
_VERBOSITY = (logging.WARNING, logging.INFO, logging.DEBUG)

app = typer.Typer(
    name="feature-env",
    help="Plan per-pull-request feature environments.",
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=False,
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"feature-env {__version__}")
        raise typer.Exit


def resolve_log_level(verbose: int, env_value: str | None) -> int | None:
    """Pick the package log level, or ``None`` to leave logging silent.

    ``FEATURE_ENV_LOG`` (a level name or number) takes precedence over ``-v``
    flags. An unrecognised value falls back to INFO with a warning on stderr.
    """
    if env_value and env_value.strip():
        value = env_value.strip()
        if value.isdigit():
            return int(value)
        level = logging.getLevelName(value.upper())
        if isinstance(level, int):
            return level
        typer.echo(f"Warning: ignoring {LOG_ENV_VAR}={env_value!r}; using INFO", err=True)
        return logging.INFO
    if verbose <= 0:
        return None
    return _VERBOSITY[min(verbose, len(_VERBOSITY) - 1)]


def _configure_logging(level: int) -> None:
    """Send ``feature_env.*`` records to stderr; third-party loggers stay untouched."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.handlers = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Log planner progress (-v info, -vv debug).",
    ),
) -> None:
    _ = version
    level = resolve_log_level(verbose, os.environ.get(LOG_ENV_VAR))
    if level is None:
        return
    _configure_logging(level)
    logging.getLogger(__name__).debug(
        "feature-env %s running '%s'", __version__, ctx.invoked_subcommand
    )


# Commands register themselves on ``app`` when imported.
from feature_env.cli import commands as _commands  # noqa: E402, F401
