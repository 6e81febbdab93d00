# tests/test_logging_setup.py

from __future__ import annotations

import logging

import pytest

from worklens.logging_setup import LOG_FILE_NAME, setup_logging


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    logging.captureWarnings(False)


def test_console_only_without_log_dir(restore_root_logger) -> None:
    assert setup_logging(console_level=logging.WARNING) is None

    handlers = restore_root_logger.handlers
    assert len(handlers) == 1
    assert handlers[0].level == logging.WARNING


def test_file_handler_gets_debug_records(tmp_path, restore_root_logger) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.ERROR)

    logging.getLogger("worklens.test").debug("graph detail")
    for h in restore_root_logger.handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / LOG_FILE_NAME
    assert "graph detail" in log_file.read_text(encoding="utf-8")


def test_console_filter_keeps_other_loggers_quiet(restore_root_logger) -> None:
    setup_logging(console_level=logging.DEBUG)
    console = restore_root_logger.handlers[0]

    def record(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert console.filter(record("worklens.context", logging.DEBUG))
    assert not console.filter(record("asyncio", logging.INFO))
    assert console.filter(record("asyncio", logging.WARNING))
