# cable/logger.py

"""
Logger module.

Module-level logging utility for Cable with colored console output and
environment-based levels. It lives outside the config layer so that it is
available before settings are loaded.
"""

import logging
import os
import sys

RESET = "\033[0m"
GREY = "\033[90m"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;37;41m",
}

MESSAGE_COLORS = {
    "DEBUG": GREY,
    "INFO": "\033[97m",
    "WARNING": "\033[33m",
    "ERROR": "\033[1;31m",
    "CRITICAL": "\033[1;37;41m",
}

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

_LEVELS = {
    "DEBUG": DEBUG,
    "INFO": INFO,
    "WARNING": WARNING,
    "ERROR": ERROR,
    "CRITICAL": CRITICAL,
}


class CableCustomFormatter(logging.Formatter):
    """Formatter producing `time | level | logger | message - (func - file:line)` lines."""

    def __init__(self, use_colors: bool = True):
        """
        Initialize formatter.

        Args:
            use_colors: Whether to use ANSI color codes (disable for file output)
        """
        super().__init__()
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
            return False
        if os.name == "nt":
            return bool(os.environ.get("TERM") or "ANSICON" in os.environ)
        return True

    def format(self, record: logging.LogRecord) -> str:
        record.asctime = self.formatTime(record, "%y-%m-%d %H:%M:%S")
        origin = f"- ({record.funcName} - {record.filename}:{record.lineno})"

        if not self.use_colors:
            formatted = (
                f"{record.asctime} | {record.levelname:<8} | "
                f"{record.name:<20} | {record.getMessage()} {origin}"
            )
        else:
            level_color = LEVEL_COLORS.get(record.levelname, RESET)
            message_color = MESSAGE_COLORS.get(record.levelname, RESET)
            formatted = (
                f"{GREY}{record.asctime}{RESET} | "
                f"{level_color}{record.levelname:<8}{RESET} | "
                f"{message_color}{record.name:<20} | {record.getMessage()}{RESET} "
                f"{GREY}{origin}{RESET}"
            )

        if record.exc_info:
            formatted = f"{formatted}\n{self.formatException(record.exc_info)}"
        return formatted


_initialized = False
_handler: logging.Handler | None = None
_root_logger: logging.Logger | None = None


def _initialize_logging() -> None:
    """Install the console handler on the root logger (called lazily)."""
    global _initialized, _handler, _root_logger

    if _initialized:
        return

    _handler = logging.StreamHandler()
    _handler.setFormatter(CableCustomFormatter())

    _root_logger = logging.getLogger()
    _root_logger.addHandler(_handler)
    _initialized = True

    _set_level_from_env()


def _set_level_from_env() -> None:
    """Set logging level from CABLE_DEV_MODE / CABLE_LOG_LEVEL."""
    if not _handler or not _root_logger:
        return

    if os.getenv("CABLE_DEV_MODE", "false").lower() in ("1", "true"):
        level = DEBUG
    else:
        level = _LEVELS.get(os.getenv("CABLE_LOG_LEVEL", "INFO").upper(), INFO)

    _handler.setLevel(level)
    _root_logger.setLevel(level)


def set_level(level: int) -> None:
    """
    Set the logging level.

    Args:
        level: Logging level (use constants like DEBUG, INFO, etc.)
    """
    _initialize_logging()
    if _handler and _root_logger:
        _handler.setLevel(level)
        _root_logger.setLevel(level)


def get_logger(name: str | None = None, level: int | None = None) -> logging.Logger:
    """
    Get a logger with custom formatting.

    Usage:
        log = get_logger(__name__)
        log.info("Hello world!")
    """
    _initialize_logging()

    if level is not None:
        set_level(level)

    return logging.getLogger(name)


def add_file_handler(
    filepath: str, level: int | None = None, use_colors: bool = False
) -> None:
    """Add a file handler to the root logger."""
    _initialize_logging()

    if not _root_logger:
        return

    file_handler = logging.FileHandler(filepath, encoding="utf-8")
    file_handler.setFormatter(CableCustomFormatter(use_colors=use_colors))
    if level is not None:
        file_handler.setLevel(level)

    _root_logger.addHandler(file_handler)


def configure_logging(
    level: int | str | None = None,
    file_path: str | None = None,
    file_level: int | None = None,
) -> None:
    """
    Configure logging with console and optional file output.

    Args:
        level: Console logging level, either a constant or its name ("DEBUG")
        file_path: Optional file path for file logging
        file_level: Optional file logging level
    """
    if isinstance(level, str):
        level = _LEVELS.get(level.upper(), INFO)

    if level is not None:
        set_level(level)

    if file_path:
        add_file_handler(file_path, file_level or level)
