"""Logging configuration for the OpenStream library engine."""

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_NAME = "openstream"

# Libraries that log chatty details at INFO/DEBUG
THIRD_PARTY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "mutagen",
)


class LocationFormatter(logging.Formatter):
    """Formatter that adds a combined ``file:line`` location field."""

    def format(self, record: Any) -> str:
        """Format log record with combined location field."""
        record.location = f"{record.filename}:{record.lineno}"
        return super().format(record)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    max_file_size: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> None:
    """Set up application logging.

    Console output goes through rich so it interleaves cleanly with the
    tables printed by the CLI.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console_output: Whether to output logs to console
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup log files to keep
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(
            LocationFormatter(fmt="%(location)-28s %(message)s", datefmt="%H:%M:%S")
        )
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            LocationFormatter(
                fmt="%(asctime)s - %(location)-28s - %(levelname)-8s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized - Level: %s", log_level)
    if log_file:
        logger.debug("Log file: %s", log_file)


def configure_third_party_loggers() -> None:
    """Keep database and tag-parsing libraries at WARNING."""
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_log_level(level: str) -> None:
    """Change the log level for openstream loggers only.

    Handlers follow the new level so the records get through; the root logger
    keeps its level, so third-party libraries stay as quiet as before.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    for handler in logging.getLogger().handlers:
        handler.setLevel(numeric_level)

    logging.getLogger(PACKAGE_NAME).setLevel(numeric_level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(PACKAGE_NAME + "."):
            logging.getLogger(name).setLevel(numeric_level)

    logger = logging.getLogger(__name__)
    logger.debug("Log level changed to: %s (openstream loggers only)", level)
