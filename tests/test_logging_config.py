"""Tests for singleton logging configuration."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from continuity.logging_config import (
    _SUPPRESSED_LOGGERS,
    LOG_DATEFMT,
    LOG_FORMAT,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _reset_flag() -> None:
    """Reset the singleton flag before each test."""
    import continuity.logging_config as mod

    mod._configured = False


def test_setup_logging_is_idempotent() -> None:
    with patch("continuity.logging_config.logging.basicConfig") as mock_bc:
        setup_logging()
        setup_logging()  # second call is no-op
        mock_bc.assert_called_once()


def test_basic_config_uses_shared_format() -> None:
    with patch("continuity.logging_config.logging.basicConfig") as mock_bc:
        setup_logging("debug")
    mock_bc.assert_called_once_with(
        level=logging.DEBUG, format=LOG_FORMAT, datefmt=LOG_DATEFMT
    )


def test_suppressed_loggers_at_warning() -> None:
    setup_logging()
    for name in _SUPPRESSED_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
