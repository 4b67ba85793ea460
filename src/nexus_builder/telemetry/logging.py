"""Structured logging sink for CLI sessions."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Route ``nexus_builder.*`` loggers through a rich handler on stderr."""
    logger = logging.getLogger("nexus_builder")
    logger.setLevel(level.upper())
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False))
    logger.propagate = False
    return logger
