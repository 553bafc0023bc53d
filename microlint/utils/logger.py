# microlint/utils/logger.py
# Project logger. Everything goes to stderr; stdout carries the validation reports.
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "microlint"

_FMT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# checked from the most severe down
_COLORS = (
    (logging.ERROR, "\033[91m"),    # red
    (logging.WARNING, "\033[93m"),  # yellow
    (logging.INFO, "\033[92m"),     # green
)


def level_from_env(default: str = "WARNING") -> int:
    """LOG_LEVEL=debug|info|warning|error (any case); unknown names fall back to `default`."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", default).upper())
    if isinstance(level, int):
        return level
    return logging.getLevelName(default.upper())


class _SeverityColorFormatter(logging.Formatter):
    def __init__(self, use_color: bool):
        super().__init__(fmt=_FMT, datefmt=_DATEFMT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.use_color:
            return line
        for threshold, color in _COLORS:
            if record.levelno >= threshold:
                return f"{color}{line}\033[0m"
        return line


def init_logger(
    level: int | None = None,
    log_file: str | Path | None = None,
    max_mb: int = 5,
    backups: int = 3,
) -> logging.Logger:
    """
    (Re)configure the "microlint" logger:
      - stream handler on stderr, colored when stderr is a terminal
      - optional rotating file handler at `log_file`
    Level comes from `level`, else LOG_LEVEL, else WARNING.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level if level is not None else level_from_env())

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(_SeverityColorFormatter(use_color=sys.stderr.isatty()))
    logger.addHandler(stream)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            filename=str(path),
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backups,
            encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter(fmt=_FMT, datefmt=_DATEFMT))
        logger.addHandler(fh)

    return logger


log = init_logger()


def get_logger(child: str) -> logging.Logger:
    """microlint.<child>; inherits handlers and level from the project logger."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
