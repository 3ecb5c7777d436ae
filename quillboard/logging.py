"""Logging setup for the admin API and CLI.

Everything goes to the root logger, which writes to stdout and to a log file.
The level is taken from LOG_LEVEL (falling back to settings.log_level). SQL
echo stays off unless DATABASE_ECHO is set.
"""

import logging
import os
import sys
from pathlib import Path

from quillboard.config import settings

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx")

logger = logging.getLogger("quillboard")


def get_log_level(level_name: str | None = None) -> int:
    """Resolve a level name such as "debug" or "WARNING" to a logging constant.

    Unknown names fall back to INFO.
    """
    name = level_name or os.getenv("LOG_LEVEL") or settings.log_level
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_server_logging(log_file: str | None = None, level: str | None = None) -> None:
    """
    Route all loggers to stdout and ``log_file``.

    Args:
        log_file: Log file path (default: settings.log_file); parent dirs are created
        level: Level name overriding LOG_LEVEL

    Calling it again replaces the handlers instead of stacking them.
    """
    log_path = Path(log_file or settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    log_level = get_log_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
    if settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    logger.debug("Logging configured: level=%s file=%s", logging.getLevelName(log_level), log_path)


__all__ = ["logger", "get_log_level", "setup_server_logging"]
