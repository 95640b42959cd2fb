import logging
import math

import pytest

from src.utils import clamp, configure_logging, finite_or
from src.utils.logging_utils import LOG_LEVEL_ENV, PACKAGE_LOGGER


def test_finite_or():
    assert finite_or(1.5, 0.0) == 1.5
    assert finite_or(math.nan, 2.0) == 2.0
    assert finite_or(math.inf, 2.0) == 2.0
    assert finite_or(None, 3.0) == 3.0
    assert finite_or("abc", 3.0) == 3.0
    assert finite_or("4.5", 0.0) == 4.5


def test_clamp():
    assert clamp(5.0, 0.0, 1.0) == 1.0
    assert clamp(-5.0, 0.0, 1.0) == 0.0
    assert clamp(0.5, 0.0, 1.0) == 0.5


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


def test_configure_logging_reads_environment(package_logger, monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "debug")
    logger = configure_logging()
    assert logger is package_logger
    assert logger.level == logging.DEBUG

    # A second call does not stack handlers
    handler_count = len(logger.handlers)
    configure_logging("warning")
    assert len(logger.handlers) == handler_count
    assert logger.level == logging.WARNING
