"""Logging utility with support for LOG prefix and structured logging."""

import logging
import sys
from datetime import datetime
from typing import Optional
from enum import Enum


LOGGER_NAME = "eventpulse"


class LogLevel(Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors, a timestamp and the LOG prefix."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
        'BOLD': '\033[1m',
    }

    def __init__(self, date_format: str = "%Y-%m-%d %H:%M:%S", use_colors: bool = True):
        super().__init__()
        self.date_format = date_format
        self.use_colors = use_colors

    def _color(self, key: str) -> str:
        return self.COLORS.get(key, '') if self.use_colors else ''

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors and LOG prefix."""
        log_prefix = f"{self._color('BOLD')}[LOG]{self._color('RESET')}"
        timestamp = datetime.fromtimestamp(record.created).strftime(self.date_format)

        if record.levelname == 'INFO':
            formatted_msg = f"{log_prefix} {timestamp} {record.getMessage()}"
        else:
            level_color = self._color(record.levelname)
            formatted_msg = (
                f"{log_prefix} {timestamp} {level_color}[{record.levelname}]"
                f"{self._color('RESET')} {record.getMessage()}"
            )

        if record.exc_info:
            formatted_msg = f"{formatted_msg}\n{self.formatException(record.exc_info)}"

        return formatted_msg


class AppLogger:
    """Application logger shared by the scheduler, gateways and API."""

    _instance: Optional['AppLogger'] = None
    _logger: Optional[logging.Logger] = None

    def __new__(cls):
        """Single logger instance per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._logger is None:
            self._setup_logger()

    def _setup_logger(self, level: str = "INFO", date_format: str = "%Y-%m-%d %H:%M:%S"):
        """Set up the logger with the colored formatter on stdout."""
        self._logger = logging.getLogger(LOGGER_NAME)
        self._logger.setLevel(getattr(logging, level))
        self._logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(
            ColoredFormatter(date_format=date_format, use_colors=sys.stdout.isatty())
        )

        self._logger.addHandler(console_handler)
        self._logger.propagate = False

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def set_level(self, level: str):
        """Set the logging level."""
        if self._logger:
            self._logger.setLevel(getattr(logging, level.upper()))
            for handler in self._logger.handlers:
                handler.setLevel(getattr(logging, level.upper()))

    def set_date_format(self, date_format: str):
        if self._logger:
            for handler in self._logger.handlers:
                if isinstance(handler.formatter, ColoredFormatter):
                    handler.formatter.date_format = date_format

    def log(self, message: str, level: LogLevel = LogLevel.INFO, exc_info: bool = False):
        """Log a message with the specified level."""
        if self._logger:
            log_func = getattr(self._logger, level.value.lower())
            log_func(message, exc_info=exc_info)

    def debug(self, message: str):
        self.log(message, LogLevel.DEBUG)

    def info(self, message: str):
        self.log(message, LogLevel.INFO)

    def warning(self, message: str):
        self.log(message, LogLevel.WARNING)

    def error(self, message: str, exc_info: bool = False):
        self.log(message, LogLevel.ERROR, exc_info=exc_info)


# Global logger instance
logger = AppLogger()


def setup_logging(level: str = "INFO", date_format: Optional[str] = None):
    """Set up logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        date_format: Optional strftime format for the timestamp column
    """
    logger.set_level(level)
    if date_format:
        logger.set_date_format(date_format)
    logger.debug(f"Logger initialized at {level.upper()}")


def log_info(message: str):
    logger.info(message)


def log_debug(message: str):
    logger.debug(message)


def log_warning(message: str):
    logger.warning(message)


def log_error(message: str, exc_info: bool = False):
    """Log an error message, optionally with the active traceback."""
    logger.error(message, exc_info=exc_info)
