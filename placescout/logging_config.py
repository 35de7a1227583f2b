"""Logging configuration helpers for the placescout scraper."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("PLACESCOUT_LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "placescout.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DISABLE_FILE_LOGS = os.getenv("PLACESCOUT_DISABLE_FILE_LOGS", "0") not in {"0", "false", "False", ""}


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with console and rotating file handlers."""

    logger = logging.getLogger(name)
    logger.setLevel(DEFAULT_LEVEL)
    logger.propagate = False

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        if not DISABLE_FILE_LOGS:
            os.makedirs(LOG_DIR, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE,
                maxBytes=1_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(DEFAULT_LEVEL)
            logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(DEFAULT_LEVEL)
        logger.addHandler(console_handler)

    return logger


def log_progress(logger: logging.Logger, current: int, total: int, item: str) -> None:
    """Log a ``Progress: current/total (pct%) - item`` line."""

    percentage = round(current / total * 100) if total > 0 else 0
    logger.info("Progress: %s/%s (%s%%) - %s", current, total, percentage, item)

