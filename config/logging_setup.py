"""Logging initialization with labeled prefixes (INFO|WARN|ERROR)."""

import logging
import sys

_configured = False


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        message = f"{label} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str = "INFO") -> None:
    """
    Attaches a stdout handler to the root logger once.
    Later calls only adjust the level.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level)
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    root.addHandler(handler)
    _configured = True


def reset_logging() -> None:
    """Removes handlers added by setup_logging. Used by tests."""
    global _configured
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, LabeledFormatter):
            root.removeHandler(handler)
    _configured = False
