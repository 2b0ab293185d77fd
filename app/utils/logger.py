"""Logging configuration for the application."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.utils.environment import is_debug

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

# Service modules log through logging.getLogger(__name__), i.e. under "app.*"
SERVICE_LOGGER_NAMESPACE = "app"


def _build_handlers(level: int, log_file: str | None) -> list[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            # 10MB per file, keep 5 backups
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)
        except OSError as e:
            console_handler.stream.write(f"Failed to create file handler for {log_file}: {e}\n")

    return handlers


def setup_logger(
    name: str = "sarhni",
    log_file: str | None = None,
    log_level: str | None = None,
) -> logging.Logger:
    """Configure and return the application logger.

    The same handlers are attached to the ``app`` namespace so that
    per-module service loggers end up in the same sinks.

    Args:
        name: Logger name
        log_file: Path to log file (default: LOG_FILE env or logs/app.log; empty disables)
        log_level: Log level (default: LOG_LEVEL env or DEBUG for local, INFO otherwise)

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "DEBUG" if is_debug() else "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    log = logging.getLogger(name)
    log.setLevel(level)

    # Prevent duplicate handlers
    if log.handlers:
        return log

    if log_file is None:
        log_file = os.getenv("LOG_FILE", "logs/app.log")

    handlers = _build_handlers(level, log_file)
    service_log = logging.getLogger(SERVICE_LOGGER_NAMESPACE)
    service_log.setLevel(level)
    for handler in handlers:
        log.addHandler(handler)
        if not service_log.handlers:
            service_log.addHandler(handler)

    log.propagate = False
    return log


# Global logger instance
logger = setup_logger()
