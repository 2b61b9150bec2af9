"""Logging setup for formatbench.

Only the CLI configures handlers.  Library modules log through the
``formatbench`` logger (or a :func:`get_logger` child of it), so
embedding code keeps full control over where benchmark logs go.

Console output goes to stderr: stdout carries the report, which may be
piped into a CSV or JSON consumer.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "formatbench"

_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Console log level for the ``-v``/``-q`` flags; ``verbose`` wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the formatbench logger for a CLI invocation.

    Calling it again replaces the previous handlers.  With *log_file*,
    everything down to DEBUG is also appended to that file, whatever
    the console level.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    while logger.handlers:
        old = logger.handlers[0]
        logger.removeHandler(old)
        old.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.debug("Logging to %s", log_file)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger ``formatbench.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
