"""Logging configuration for the CLI process.

Library modules only ever call :func:`logging.getLogger`; this is the
single place that attaches a handler.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from mdu.cli.console import console

LOGGER_NAME = "mdu"


def configure_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Route the ``mdu`` logger hierarchy through Rich on stderr.

    Idempotent: calling it again only changes the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console,
            show_path=False,
            rich_tracebacks=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
