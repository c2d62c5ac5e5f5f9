"""Tests for CLI logging setup."""

from __future__ import annotations

import logging

from stacfilter.logging_config import LOGGER_NAME, configure_logging


def test_configure_logging_quiet_by_default() -> None:
    """Without flags only warnings pass and no handler is attached."""
    logger = configure_logging(verbose=False)

    assert logger.name == LOGGER_NAME
    assert logger.level == logging.WARNING
    assert logger.handlers == []


def test_configure_logging_verbose_shows_info() -> None:
    """--verbose should attach one INFO handler with bare messages."""
    logger = configure_logging(verbose=True)

    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert logger.handlers[0].formatter._fmt == "%(message)s"  # type: ignore[union-attr]


def test_configure_logging_debug_prefixes_records() -> None:
    """--debug should show DEBUG records with level and module."""
    logger = configure_logging(verbose=False, debug=True)

    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG
    assert "%(levelname)s" in logger.handlers[0].formatter._fmt  # type: ignore[union-attr]


def test_configure_logging_replaces_handlers() -> None:
    """Repeated setup should not stack handlers."""
    configure_logging(verbose=True)
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
