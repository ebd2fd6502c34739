"""Logging setup for the ``liveview`` logger namespace.

The viewer owns the terminal while it runs, so records never go to stderr:
without a log file the namespace only carries a ``NullHandler``.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "liveview"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> logging.Logger:
    """Configure the package logger, replacing handlers from earlier calls."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return logger

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(file_handler)
    return logger
