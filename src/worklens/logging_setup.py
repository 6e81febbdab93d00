# src/worklens/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_FILE_NAME = "worklens.log"


class _OwnLogsFilter(logging.Filter):
    """Console shows worklens logs; other loggers only at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "worklens" or record.name.startswith("worklens."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    log_dir: str | Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path | None:
    """
    Console logging on stderr, plus a full log file when `log_dir` is given.
    Replaces any handlers already on the root logger. Returns the log file path.
    """
    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_OwnLogsFilter())
    root.addHandler(console)

    log_file: Path | None = None
    if log_dir is not None:
        log_file = Path(log_dir) / LOG_FILE_NAME
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
