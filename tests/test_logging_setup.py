"""Tests for renamebot logging configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.logging import RichHandler

from renamebot.config.models import LoggingSettings
from renamebot.logging_setup import configure_logging


def test_verbose_flags_lower_console_level() -> None:
    logger = configure_logging(LoggingSettings(level="WARNING"), verbose=1)

    [handler] = logger.handlers
    assert isinstance(handler, RichHandler)
    assert handler.level == logging.INFO
    assert not logger.propagate


def test_file_handler_receives_debug_records(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "renamebot.log"
    logger = configure_logging(LoggingSettings(file=str(log_file), max_size_mb=1, backup_count=2))

    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].backupCount == 2

    logging.getLogger("renamebot.test").debug("planned %d mapping(s)", 3)
    file_handlers[0].flush()
    assert "planned 3 mapping(s)" in log_file.read_text(encoding="utf-8")

    logger = configure_logging(LoggingSettings())
    assert not any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
