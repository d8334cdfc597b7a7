"""
Application Logger

This module provides the logging setup shared by every SkillGauge component:
a single ``skillgauge`` root logger configured from the environment, an
optional JSON formatter for log aggregation and a timing decorator.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from typing import Any, Callable, Optional, TypeVar, Union

from skillgauge.config import settings

# Default log format
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

APP_LOGGER_NAME = "skillgauge"

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'configure_logger',
    'JsonFormatter',
    'app_logger',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    Formatter that renders each record as a single JSON object.

    Fields passed through ``extra={"data": {...}}`` are merged into the
    top-level object.
    """

    def __init__(self, datefmt: Optional[str] = None, *, indent: Optional[int] = None):
        super().__init__(datefmt=datefmt)
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno
        }

        if record.exc_info:
            log_object["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        data = getattr(record, "data", None)
        if isinstance(data, dict):
            log_object.update(data)

        return json.dumps(log_object, indent=self.indent, default=str)


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    format_string: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure a logger with console and/or file handlers.

    Args:
        name: Logger name
        level: Log level name or number
        format_string: Log format string (ignored when use_json is set)
        date_format: Date format string
        use_json: Whether to emit JSON lines
        log_file: Optional path of a log file
        console_output: Whether to log to stdout

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []

    if use_json:
        formatter: logging.Formatter = JsonFormatter(datefmt=date_format)
    else:
        formatter = logging.Formatter(format_string, date_format)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning("Could not create log file %s: %s", log_file, e)

    return logger


def get_app_logger() -> logging.Logger:
    """Get the application logger, configuring it on first use."""
    logger = logging.getLogger(APP_LOGGER_NAME)

    if not logger.handlers:
        return configure_logger(
            name=APP_LOGGER_NAME,
            level=settings.LOG_LEVEL,
            use_json=settings.LOG_JSON,
            log_file=settings.LOG_FILE,
            console_output=True
        )

    return logger


app_logger = get_app_logger()


def log_execution_time(logger: Optional[logging.Logger] = None) -> Callable[[F], F]:
    """
    Decorator that logs how long the wrapped call took.

    Failures are logged at ERROR with the elapsed time and re-raised.

    Args:
        logger: Logger to use; defaults to the application logger
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                (logger or app_logger).error(
                    "%s failed after %.3f seconds: %s",
                    func.__qualname__, time.perf_counter() - start_time, e
                )
                raise
            (logger or app_logger).debug(
                "%s executed in %.3f seconds",
                func.__qualname__, time.perf_counter() - start_time
            )
            return result

        return wrapper  # type: ignore[return-value]
    return decorator
