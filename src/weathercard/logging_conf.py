"""Logging setup shared by the CLI and the terminal UI."""
from __future__ import annotations

import logging

from rich.logging import RichHandler
from textual.logging import TextualHandler


def setup_logging(level: str = "WARNING", *, tui: bool = False) -> logging.Logger:
    """Configure the ``weathercard`` logger.

    While the Textual app owns the terminal, records go to the Textual devtools
    console instead of stderr.
    """
    handler: logging.Handler
    if tui:
        handler = TextualHandler()
    else:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("weathercard")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers[:] = [handler]
    logger.propagate = False

    # requests-cache logs every cache hit at DEBUG
    logging.getLogger("requests_cache").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger
