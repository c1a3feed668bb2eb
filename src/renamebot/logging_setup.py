"""Logging configuration for the renamebot CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from renamebot.config.models import LoggingSettings

_HANDLER_MARKER = "_renamebot_handler"


def configure_logging(settings: LoggingSettings, *, verbose: int = 0) -> logging.Logger:
    """Install renamebot handlers on the package logger.

    Repeated calls replace the handlers installed by earlier calls, so the CLI can
    reconfigure logging after loading configuration.

    Args:
        settings: Logging section of the resolved configuration.
        verbose: Number of ``-v`` flags; each one lowers the threshold by a level.

    Returns:
        logging.Logger: The configured ``renamebot`` logger.
    """
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    level = max(logging.DEBUG, level - 10 * verbose)

    logger = logging.getLogger("renamebot")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        file_handler.setLevel(logging.DEBUG)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG if settings.file else level)
    logger.propagate = False
    return logger


__all__ = ["configure_logging"]
