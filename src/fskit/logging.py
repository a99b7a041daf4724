"""Logging configuration for the fskit CLI.

Library code only creates module loggers under ``fskit``; handlers are
attached here, by the CLI, so applications embedding fskit keep control of
their own logging setup.
"""

import logging
from enum import IntEnum
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "fskit"


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def resolve_level(verbosity: int = 0, quiet: bool = False, debug: bool = False) -> int:
    """Map CLI flags to a log level.

    Precedence: quiet > debug > verbosity.
    """
    if quiet:
        return LogLevel.QUIET
    if debug or verbosity >= 1:
        return LogLevel.VERBOSE
    return LogLevel.NORMAL


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stream: TextIO | None = None,
    debug: bool = False,
) -> Console:
    """Attach a Rich handler to the ``fskit`` logger.

    Args:
        verbosity: Number of -v flags (0=info, 1+=debug)
        quiet: Only warnings and errors
        no_color: Disable colored output
        stream: Output stream for logs (default: stderr)
        debug: Debug level with timestamps and source locations

    Returns:
        Configured Rich console for output
    """
    level = resolve_level(verbosity, quiet, debug)
    detailed = debug or verbosity >= 2

    console = Console(
        file=stream,
        stderr=stream is None,
        force_terminal=not no_color,
        no_color=no_color,
    )
    handler = RichHandler(console=console, show_time=detailed, show_path=detailed)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return console
