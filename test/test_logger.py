"""
Logger handler setup.
"""
import logging
from logging.handlers import RotatingFileHandler

from core.logger import setup_logger


def test_console_and_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    logger = setup_logger(name="eduaudit.test.file", log_file=log_file, level=logging.DEBUG)

    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    logger.info("complaint filed")
    for h in logger.handlers:
        h.flush()
    assert "[test_logger] complaint filed" in log_file.read_text(encoding="utf-8")


def test_unwritable_log_path_falls_back_to_stdout(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    logger = setup_logger(name="eduaudit.test.fallback", log_file=blocker / "app.log")

    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0], RotatingFileHandler)


def test_setup_twice_does_not_duplicate_handlers():
    setup_logger(name="eduaudit.test.twice")
    logger = setup_logger(name="eduaudit.test.twice")
    assert len(logger.handlers) == 1
