"""Tests for logging configuration."""

import logging

from nutritrack.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("nutritrack")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging("debug")
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_configure_logging_quiets_http_client_logs() -> None:
    configure_logging()

    assert logging.getLogger("httpx").level == logging.WARNING
