import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from renoquote.core.config import settings

LOG_FORMAT = "%(levelname)s | %(asctime)s | %(name)s | %(message)s"

LOG_DIR = Path(settings.LOG_DIR)
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "renoquote.log"


def _log_level() -> int:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def _console_stream():
    """stdout reopened as UTF-8; falls back to sys.stdout when it has no usable fileno."""
    try:
        return open(sys.stdout.fileno(), mode="w", encoding="utf-8", closefd=False)
    except (OSError, ValueError, AttributeError):
        return sys.stdout


def _handlers(level: int):
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler(_console_stream())

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.setLevel(level)
        yield handler


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    # Handlers are attached once per logger name
    if not logger.handlers:
        level = _log_level()
        for handler in _handlers(level):
            logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False

    return logger
