import logging
import sys
from pathlib import Path
from typing import Optional
from query_llm.utils.config import get_config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _file_handler(log_file: str, level: int) -> logging.Handler:
    # Log directory is created on first use, e.g. logs/ next to the REPL
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    # stdout carries the streamed answer; log lines must not interleave with it
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_to_console: Optional[bool] = None
) -> logging.Logger:
    """
    Set up a module logger for the pipeline, the LLM client or the REPL.

    Every stage entry, LLM attempt and retry ends up in the log file. The
    console copy is off by default because the terminal is busy showing the
    answer as it streams in.

    Args:
        name: Logger name (usually __name__ of the module)
        level: Log level (DEBUG, INFO, WARNING, ERROR). If None, uses LOG_LEVEL
        log_file: Path to log file; empty disables the file. If None, uses LOG_FILE
        log_to_console: Whether to copy logs to stderr. If None, uses LOG_TO_CONSOLE

    Returns:
        Configured logger instance
    """
    config = get_config()
    level = level if level is not None else config.LOG_LEVEL
    log_file = log_file if log_file is not None else config.LOG_FILE
    if log_to_console is None:
        log_to_console = config.LOG_TO_CONSOLE

    numeric_level = getattr(logging, level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Re-running setup replaces the handlers instead of stacking them
    logger.handlers.clear()

    if log_file:
        logger.addHandler(_file_handler(log_file, numeric_level))
    if log_to_console:
        logger.addHandler(_console_handler(numeric_level))

    # Keep records out of the root logger (and out of stdout)
    logger.propagate = False

    return logger


# Loggers handed out so far, by module name
_loggers: dict[str, logging.Logger] = {}

def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger for the given module.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Logger instance
    """
    if name not in _loggers:
        _loggers[name] = setup_logger(name)
    return _loggers[name]

def clear_loggers() -> None:
    """Close the handlers of every cached logger and forget them (tests reset logging with this)."""
    for logger in _loggers.values():
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
    _loggers.clear()
