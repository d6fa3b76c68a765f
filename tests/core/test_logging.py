"""Tests for logging setup."""
import logging

import pytest
import structlog
from structlog.stdlib import ProcessorFormatter

from facegallery.core.logging import get_logger, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_installs_structlog_handler(restore_logging):
    setup_logging()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, ProcessorFormatter)
    assert logging.getLogger("insightface").level == logging.WARNING


def test_logger_accepts_key_value_events(restore_logging):
    setup_logging()
    logger = get_logger("facegallery.tests")
    logger.info("Published gallery", samples=3, categories=2)
