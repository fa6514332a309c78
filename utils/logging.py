"""
Logging configuration for the AmbientNoiseLoop.

Log records go to stderr so that the status readout owns stdout. A log
file, when requested, receives the detailed format with thread names,
since generation runs on the scheduler's worker thread.
"""

import logging
import logging.handlers
import os
import sys
import time
from typing import List, Optional, Union

from models.constants import Constants

CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(threadName)s - %(message)s'


class LoggingManager:
    """Tracks the handlers installed by setup_logging() so they are installed only once."""
    _instance = None

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = LoggingManager()
        return cls._instance

    def __init__(self):
        self.handlers: List[logging.Handler] = []

    @property
    def configured(self) -> bool:
        return bool(self.handlers)

    def install(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self.handlers.append(handler)

    def reset(self, logger: logging.Logger) -> None:
        """Remove and close every installed handler."""
        for handler in self.handlers:
            logger.removeHandler(handler)
            handler.close()
        self.handlers = []


def _resolve_level(verbose: bool, log_level: Optional[Union[int, str]]) -> int:
    if log_level is None:
        return logging.DEBUG if verbose else logging.INFO
    if isinstance(log_level, str):
        return getattr(logging, log_level.upper(), logging.INFO)
    return log_level


def setup_logging(
    verbose: bool = False,
    log_to_file: bool = False,
    log_file: Optional[str] = None,
    log_level: Optional[Union[int, str]] = None,
    enable_rotation: bool = True,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        verbose: Log at DEBUG instead of INFO
        log_to_file: Whether to also log to a file
        log_file: Path to log file (defaults to ambient_noise_{timestamp}.log in cwd)
        log_level: Explicit level, overriding the verbose flag
        enable_rotation: Rotate the log file once it reaches max_bytes
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured logger
    """
    manager = LoggingManager.get_instance()
    logger = logging.getLogger(Constants.LOGGER_NAME)

    if manager.configured:
        return logger

    level = _resolve_level(verbose, log_level)
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    manager.install(logger, console_handler)

    if log_to_file:
        if not log_file:
            log_file = f"ambient_noise_{time.strftime('%Y%m%d_%H%M%S')}.log"
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if enable_rotation:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count
            )
        else:
            file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        manager.install(logger, file_handler)

    logger.debug(f"Logging initialized at level: {logging.getLevelName(level)}")
    if log_to_file:
        logger.info(f"Logging to file: {log_file}")

    return logger
