"""Logging configuration for the command-line tools."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "storediag"


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """Attach a Rich handler writing to stderr to the package logger.

    Args:
        verbose: Log at INFO instead of WARNING
        console: Console for the handler (defaults to a stderr console)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console if console is not None else Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)

    logger.propagate = False
    return logger
