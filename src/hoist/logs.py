"""Append-only run log configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from hoist.config.models import LoggingSettings

DEFAULT_LOG_PATH = Path("~/.hoist/hoist.log")
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "hoist-file"


def configure_logging(settings: LoggingSettings, log_path: Path | None = None) -> Path:
    """Attach a rotating file handler to the ``hoist`` logger.

    Calling this again replaces the handler installed by a previous call.

    Args:
        settings: Logging section of the loaded configuration.
        log_path: Explicit log location overriding ``settings.file``.

    Returns:
        Path: Location of the log file.
    """
    if log_path is None:
        log_path = Path(settings.file) if settings.file else DEFAULT_LOG_PATH
    log_path = log_path.expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("hoist")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    handler = RotatingFileHandler(
        log_path,
        maxBytes=max(settings.max_size_mb, 0) * 1024 * 1024,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    level = logging.getLevelName(settings.level.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)
    return log_path


__all__ = ["DEFAULT_LOG_PATH", "LOG_FORMAT", "configure_logging"]
