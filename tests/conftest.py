"""Shared fixtures for mdcite tests."""

import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_logging():
    """Restore root and mdcite logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    mdcite_logger = logging.getLogger("mdcite")
    mdcite_level = mdcite_logger.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    mdcite_logger.setLevel(mdcite_level)
