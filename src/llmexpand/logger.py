"""Logging configuration for LLM Expand using loguru."""

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

# Store the configured log file path so repeated setup calls keep writing to the same file
_log_file_path: Optional[str] = None


def default_log_path() -> str:
    """
    Return the default log file location.

    ``LLMEXPAND_LOG_FILE`` wins when set; otherwise the log goes to
    ``$XDG_CACHE_HOME/llmexpand/llmexpand.log`` (``~/.cache`` fallback).
    """
    override = os.getenv("LLMEXPAND_LOG_FILE")
    if override:
        return override
    cache_home = os.getenv("XDG_CACHE_HOME") or os.path.join(Path.home(), ".cache")
    return os.path.join(cache_home, "llmexpand", "llmexpand.log")


def setup_logger(
    log_file: Optional[str] = None,
    log_level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "7 days",
    compression: str = "zip",
    console_output: bool = False,
) -> None:
    """
    Configure loguru logger with file and console output.

    Args:
        log_file: Path to the log file (if None, uses the previously configured path or default)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: Log rotation size
        retention: How long to keep old logs
        compression: Compression format for old logs
        console_output: Whether to output to stderr as well
    """
    global _log_file_path

    if log_file is None:
        if _log_file_path is None:
            _log_file_path = default_log_path()
        log_file = _log_file_path
    else:
        log_file = os.path.abspath(log_file)
        _log_file_path = log_file

    logger.remove()

    if console_output:
        logger.add(
            sys.stderr,
            level=log_level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan> - <level>{message}</level>",
            colorize=True,
        )

    logger.add(
        log_file,
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}",
        rotation=rotation,
        retention=retention,
        compression=compression,
        encoding="utf-8",
    )


def get_logger(name: Optional[str] = None):
    """
    Get a logger bound to a component name.

    Args:
        name: Component name shown in every record

    Returns:
        Logger instance
    """
    return logger.bind(name=name or "llmexpand")


# Records emitted through the bare loguru logger still need the "name" extra
logger.configure(extra={"name": "llmexpand"})
