# src/smartplan/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "smartplan.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty on every planner request; only warnings are worth keeping.
QUIET_LIBRARIES = ("httpx", "httpcore", "openai")

# Prints reminders itself; its INFO lines would land in the middle of the prompt.
_DISPATCHER_LOGGER = "smartplan.reminders.reminder_dispatcher"


class _ConsoleNoiseFilter(logging.Filter):
    """smartplan records pass (dispatcher only at WARNING+); everything else only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == _DISPATCHER_LOGGER:
            return record.levelno >= logging.WARNING
        if record.name.startswith("smartplan."):
            return True
        return record.levelno >= logging.ERROR


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(log_file: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = RotatingFileHandler(str(log_file), maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/smartplan",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all records to stderr (filtered) and to <log_dir>/smartplan.log.

    Replaces any handlers already on the root logger. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.addHandler(_console_handler(console_level, formatter))
    root.addHandler(_file_handler(log_file, file_level, formatter))

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    # warnings.warn(...) arrives as 'py.warnings' and is held to ERROR+ on the console.
    logging.captureWarnings(True)
    return log_file
