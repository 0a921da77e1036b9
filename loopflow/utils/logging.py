"""
Logging utilities for loopflow
"""

import logging
import sys
import time
from functools import wraps
from pathlib import Path
from typing import Optional, Union

import colorlog

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER = "loopflow"


def setup_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Attach console and optional file handlers to the ``loopflow`` logger

    Handlers installed by an earlier call are replaced; the root logger and
    handlers owned by the host application are left alone, and loopflow
    records stop propagating to the root logger.

    Args:
        level: Logging level (INFO, DEBUG, etc.)
        log_file: Optional file to write logs to
        format_string: Custom format string
        use_colors: Whether to use colored output for console

    Returns:
        The configured ``loopflow`` logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = DEFAULT_FORMAT

    if use_colors:
        console_handler = colorlog.StreamHandler(sys.stdout)
        console_formatter = colorlog.ColoredFormatter(
            "%(log_color)s" + format_string,
            datefmt=DATE_FORMAT,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_formatter = logging.Formatter(format_string, datefmt=DATE_FORMAT)

    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)

    loopflow_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(loopflow_logger.handlers):
        if getattr(handler, "_loopflow_managed", False):
            loopflow_logger.removeHandler(handler)
            handler.close()

    console_handler._loopflow_managed = True
    loopflow_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt=DATE_FORMAT))
        file_handler.setLevel(level)
        file_handler._loopflow_managed = True
        loopflow_logger.addHandler(file_handler)

    loopflow_logger.setLevel(level)
    loopflow_logger.propagate = False

    return loopflow_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module"""
    if name.startswith(PACKAGE_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def log_execution_time(func):
    """Decorator to log execution time of functions"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.time()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(
                f"{func.__name__} failed after {execution_time:.2f} seconds: {e}"
            )
            raise

        execution_time = time.time() - start_time
        logger.info(f"{func.__name__} completed in {execution_time:.2f} seconds")
        return result

    return wrapper
