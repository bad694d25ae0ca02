"""Logging configuration for rc."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .runtime import get_log_dir

# Global flag to track if logging has been initialized
_logging_initialized = False
_log_file_path = None


def setup_logger(
    log_dir: Optional[str] = None,
    log_level: Optional[str] = None,
    log_to_console: bool = False,
    console_level: int = logging.WARNING,
    log_to_file: bool = True,
) -> None:
    """Configure the logging system globally.

    Called once at startup when --verbose is given (file + console), or with
    log_to_file=False when ENABLE_LOGGING asks for console warnings only.

    Args:
        log_dir: Directory to store log files (default: $XDG_STATE_HOME/rc/logs/)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_console: Whether to also log to stderr
        console_level: Minimum level for the console handler
        log_to_file: Whether to write a log file
    """
    global _logging_initialized, _log_file_path

    if _logging_initialized:
        return

    # Get log level from Config if not provided
    if log_level is None:
        try:
            from config import Config

            log_level = Config.LOG_LEVEL
        except ImportError:
            log_level = "DEBUG"

    level = getattr(logging, log_level.upper(), logging.DEBUG)
    logging.root.setLevel(min(level, console_level) if log_to_console else level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_to_file:
        log_path = Path(log_dir or get_log_dir())
        log_path.mkdir(exist_ok=True, parents=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"rc_{timestamp}.log"
        _log_file_path = str(log_file)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logging.root.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logging.root.addHandler(console_handler)

    _logging_initialized = True

    logging.info(f"Logging initialized. Level: {log_level}, File: {_log_file_path}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Logging is only enabled when setup_logger() is called explicitly.
    Without it, records below WARNING go nowhere.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_log_file_path() -> Optional[str]:
    """Get the path to the current log file.

    Returns:
        Path to log file, or None if logging to file is disabled
    """
    return _log_file_path
