"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from stacfilter import config
from stacfilter.logging_config import LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Iterator[None]:
    """Undo logger setup and config globals left behind by CLI invocations."""
    defaults = dict(config.CONFIG_DEFAULTS)
    dialects = dict(config.CONFIG_DIALECTS)
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    config.CONFIG_DEFAULTS.clear()
    config.CONFIG_DEFAULTS.update(defaults)
    config.CONFIG_DIALECTS.clear()
    config.CONFIG_DIALECTS.update(dialects)
