from __future__ import annotations

import logging

import pytest

from config.logging_setup import LabeledFormatter, reset_logging, setup_logging


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


def _labeled_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h.formatter, LabeledFormatter)]


def test_setup_logging_is_idempotent():
    setup_logging()
    setup_logging("DEBUG")
    assert len(_labeled_handlers()) == 1
    assert logging.getLogger().level == logging.DEBUG


@pytest.mark.parametrize("level, label", [
    (logging.INFO, "INFO"),
    (logging.WARNING, "WARN"),
    (logging.ERROR, "ERROR"),
])
def test_labeled_formatter(level, label):
    record = logging.LogRecord("sheets.sheet_fetcher", level, __file__, 1, "Parsed %d rows", (5,), None)
    assert LabeledFormatter().format(record) == f"{label} [sheets.sheet_fetcher] Parsed 5 rows"


def test_reset_logging_removes_handler():
    setup_logging()
    reset_logging()
    assert _labeled_handlers() == []
