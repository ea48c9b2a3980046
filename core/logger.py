"""
Logging for the EduAudit backend.

One named logger, ``eduaudit``, is shared by every module. It always writes to
stdout and, when LOG_FILE is set and writable, to a size-rotated file as well.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

import config


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(log_file: Path, max_bytes: int, backup_count: int) -> Optional[RotatingFileHandler]:
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    except OSError as e:
        sys.stderr.write(f"Cannot open log file {log_file} ({e}); logging to stdout only\n")
        return None


def setup_logger(
    name: str = "eduaudit",
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure `name` with a stdout handler and an optional rotating file handler.

    Calling it again replaces the previous handlers.

    Args:
        name: Logger name
        log_file: Rotating log file; None for stdout only
        level: Level applied to the logger and its handlers
        max_bytes: Size at which the file rotates
        backup_count: Rotated files kept

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        file_handler = _file_handler(log_file, max_bytes, backup_count)
        if file_handler:
            handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


logger = setup_logger(
    log_file=Path(config.LOG_FILE) if config.LOG_FILE else None,
    level=logging.DEBUG if config.DEBUG else logging.INFO
)
