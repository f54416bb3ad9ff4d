"""Logging configuration for the command line interface."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "ncmerge"

# Between INFO and DEBUG: what the merge is doing, without per-call detail.
DIAGNOSTIC = 15
logging.addLevelName(DIAGNOSTIC, "DIAGNOSTIC")

VERBOSITY_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: DIAGNOSTIC,
    4: logging.DEBUG,
}


def verbosity_to_level(verbosity: int) -> int:
    """Map a verbosity of 0-4 to a logging level; values out of range are clamped."""
    verbosity = min(max(verbosity, 0), max(VERBOSITY_LEVELS))
    return VERBOSITY_LEVELS[verbosity]


def configure_logging(verbosity: int = 2) -> logging.Logger:
    """Send package log records to stderr through rich.

    Only the package logger is touched, and calling this again replaces the
    handler installed earlier rather than adding another one.

    Args:
        verbosity: 0 (errors only) to 4 (debug).

    Returns:
        The package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(verbosity_to_level(verbosity))
    return logger
