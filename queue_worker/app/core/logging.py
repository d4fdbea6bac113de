"""Loguru sink setup for the worker process."""
from __future__ import annotations

import sys

from loguru import logger

TEXT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} [{level}] {extra[event]} {message} | {extra}"
)


def configure_logging(level: str = "INFO", *, json: bool = False) -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.configure(extra={"event": "-"})
    if json:
        logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=level.upper(), format=TEXT_FORMAT)
