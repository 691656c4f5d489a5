from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import JSONFormatter

LOGGER_NAME = "atlas"
_MARKER = "_atlas_handler"
_NOISY_LOGGERS = ("httpx", "httpcore")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _file_logging_enabled() -> bool:
    return os.getenv("ATLAS_LOG_TO_FILE", "on").strip().casefold() == "on"


def _owned_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, _MARKER, False)]


def _mark(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    setattr(handler, _MARKER, True)
    return handler


def _file_handler(log_path: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=_env_int("ATLAS_LOG_MAX_BYTES", 5_000_000),
        backupCount=_env_int("ATLAS_LOG_BACKUP_COUNT", 5),
        encoding="utf-8",
    )
    _mark(handler, formatter)
    return handler


def configure_logging(state_dir: Path) -> logging.Logger:
    """Attach JSON stdout and rotating-file handlers to the ``atlas`` logger.

    Safe to call repeatedly: handlers installed by an earlier call are reused.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level_name = os.getenv("ATLAS_LOG_LEVEL", "INFO").strip().upper()
    logger.setLevel(logging.getLevelNamesMapping().get(level_name, logging.INFO))
    logger.propagate = False

    owned = _owned_handlers(logger)
    formatter = JSONFormatter()

    if not any(type(handler) is logging.StreamHandler for handler in owned):
        logger.addHandler(_mark(logging.StreamHandler(stream=sys.stdout), formatter))

    if _file_logging_enabled():
        log_path = Path(os.getenv("ATLAS_LOG_DIR") or state_dir / "logs") / "atlas.log"
        already = any(
            isinstance(handler, RotatingFileHandler) and handler.baseFilename == os.path.abspath(log_path)
            for handler in owned
        )
        if not already:
            logger.addHandler(_file_handler(log_path, formatter))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
