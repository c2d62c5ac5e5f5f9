"""Logging setup for the stacfilter command line."""

from __future__ import annotations

import logging
import sys


LOGGER_NAME = "stacfilter"
DEBUG_FORMAT = "%(levelname)s %(module)s: %(message)s"


def _stdout_handler(level: int, fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(verbose: bool, debug: bool = False) -> logging.Logger:
    """Route stacfilter log records to stdout.

    ``verbose`` shows INFO records as bare messages; ``debug`` also shows
    the parser and translator DEBUG records, prefixed with level and module.
    Otherwise only warnings are kept and no handler is attached.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    logger.handlers.clear()

    if debug:
        logger.setLevel(logging.DEBUG)
        logger.addHandler(_stdout_handler(logging.DEBUG, DEBUG_FORMAT))
    elif verbose:
        logger.setLevel(logging.INFO)
        logger.addHandler(_stdout_handler(logging.INFO, "%(message)s"))
    else:
        logger.setLevel(logging.WARNING)
    return logger
