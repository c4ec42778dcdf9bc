"""Logging configuration for n8n-state.

Diagnostics go to stderr through a rich handler so they never interleave with
the tables printed on stdout.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "n8n_state"


def setup_logging(level: str = "WARNING", quiet: bool = False,
                  console: Optional[Console] = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        quiet: Only report errors
        console: Console to render to (defaults to a stderr console)

    Returns:
        The configured package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    if quiet:
        numeric_level = logging.ERROR

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    logger.handlers = [handler]
    logger.propagate = False

    # Set levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logger
