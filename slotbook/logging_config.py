"""
Logging setup shared by the CLI and any embedding application.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "slotbook-rich"


def setup_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """
    Attach a rich handler to the ``slotbook`` logger.

    Calling this more than once only updates the level.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)
        console: Optional rich console to write to (defaults to stderr)

    Returns:
        The package logger
    """
    logger = logging.getLogger("slotbook")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)

    return logger
