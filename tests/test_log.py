"""Tests for logging configuration."""

import logging
from pathlib import Path

from rich.logging import RichHandler

from dropdock.config.models import LoggingSettings
from dropdock.log import LOGGER_NAME, configure_logging


def _our_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, "_dropdock_handler", False)]


def test_configure_logging_replaces_previous_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "dropdock.log"

    configure_logging(LoggingSettings(level="DEBUG", file=str(log_file)))
    logger = configure_logging(LoggingSettings(level="INFO", file=str(log_file)))

    try:
        handlers = _our_handlers(logger)
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.INFO
        assert len(handlers) == 2
        assert any(isinstance(handler, RichHandler) for handler in handlers)

        logging.getLogger("dropdock.ingestion.writer").info("wrote something")
        for handler in handlers:
            handler.flush()
        assert "wrote something" in log_file.read_text(encoding="utf-8")
    finally:
        configure_logging(LoggingSettings())


def test_unknown_level_falls_back_to_warning() -> None:
    logger = configure_logging(LoggingSettings(level="chatty"))

    assert logger.level == logging.WARNING
