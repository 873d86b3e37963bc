"""
Centralized Logging Configuration

One root configuration for the whole service: console output always, a
rotating log file when LOG_FILE is set. Modules get their logger through
get_logger(__name__).

Also installs the crash hook that turns an uncaught exception into a
logged, immediate process exit.
"""

import logging
import os
import sys
import threading
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

from core.config import Settings, get_settings

CONSOLE_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Chatty libraries only report warnings and above
QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "fastapi",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)


def _file_handler(path: str, level: int) -> Optional[logging.Handler]:
    """Rotating file handler for path, or None if the file can't be opened."""
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        logging.getLogger(__name__).warning(f"File logging disabled, cannot open {path}: {str(e)}")
        return None

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the root logger from settings.

    Replaces any handlers already on the root logger, so calling it again
    reconfigures rather than duplicates output.

    Args:
        settings: Source of LOG_LEVEL and LOG_FILE (default: environment)

    Returns:
        Root logger instance
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root_logger.addHandler(console)

    if settings.LOG_FILE:
        handler = _file_handler(settings.LOG_FILE, level)
        if handler is not None:
            root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module (typically __name__)."""
    return logging.getLogger(name)


def install_excepthook() -> None:
    """
    Log uncaught exceptions at CRITICAL and terminate the process.

    Covers the main thread and worker threads. The process exits with
    status 1 so that an external supervisor can restart it.
    """
    logger = get_logger("visit_tracker.crash")

    def _handle_exception(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical("Uncaught exception, terminating", exc_info=(exc_type, exc_value, exc_tb))
        logging.shutdown()
        os._exit(1)

    def _handle_thread_exception(args):
        if args.exc_type is SystemExit:
            return
        _handle_exception(args.exc_type, args.exc_value, args.exc_traceback)

    sys.excepthook = _handle_exception
    threading.excepthook = _handle_thread_exception
