"""Logging setup for tablegen.

Modules obtain their logger with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once to attach a rich console handler.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "tablegen"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the tablegen root logger.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        The logger instance.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(level: int | str = logging.WARNING, console: Console | None = None) -> None:
    """Configure the tablegen root logger with a rich handler.

    Calling this more than once only updates the level.

    Args:
        level: Logging level (name or number).
        console: Console to log to, defaults to stderr.
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    if _configured:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.propagate = False
    _configured = True
