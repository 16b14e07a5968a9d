"""Logging setup: every line goes to stdout and to an append-only log file.

Format is ``YYYY-MM-DD HH:MM:SS [TAG] message``; the tag is fixed per run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "macstandardize"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(tag: str, log_file: str | Path | None = None, level: int = logging.INFO) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # avoid duplicate lines when called more than once in a process (tests, reruns)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(f"%(asctime)s [{tag}] %(message)s", datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as exc:
            logger.warning(
                "⚠️ Cannot open log file %s (%s); logging to stdout only.", path, exc
            )
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
