"""
logging_config.py

Logging setup for the Timetable AI service.

Every module keeps its own `logging.getLogger(__name__)`. This file only
decides where records go:
- Console (stdout)
- logs/combined.log (everything)
- logs/error.log (errors only)

Pipeline components pass structured fields through `extra={...}`
(stage, result, counts). The formatter below appends those fields to the
message as `key=value` pairs so they survive in plain-text logs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from timetable_ai.config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else came from `extra`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Formatter that appends `extra` fields as ` | key=value` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not fields:
            return message

        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{message} | {pairs}"


def configure_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """
    Install console and file handlers on the root logger.

    Safe to call more than once: existing handlers installed by this
    function are replaced, not duplicated.

    Parameters:
    - level: log level name (defaults to LOG_LEVEL from config)
    - log_dir: directory for log files (defaults to LOG_DIR from config)

    Called by:
    - create_app() in timetable_ai/main.py
    """

    level = (level or LOG_LEVEL).upper()
    directory = Path(log_dir or LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    formatter = StructuredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    combined_handler = logging.FileHandler(directory / "combined.log", encoding="utf-8")
    combined_handler.setFormatter(formatter)

    error_handler = logging.FileHandler(directory / "error.log", encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_timetable_ai", False):
            root.removeHandler(handler)
            handler.close()

    for handler in (console_handler, combined_handler, error_handler):
        handler._timetable_ai = True
        root.addHandler(handler)

    root.setLevel(level)
