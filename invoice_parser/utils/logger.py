"""
Logging Configuration Module.

All loggers of the parser live under the "invoice_parser" namespace.
setup_logger() attaches a colorized console handler and an optional
rotating log file to that namespace; module loggers obtained through
get_logger() inherit both. log_stage() times one pipeline stage and
reports it at DEBUG level.

Usage:
    from invoice_parser.utils.logger import get_logger, log_stage, setup_logger

    setup_logger(level="DEBUG")
    logger = get_logger(__name__)

    timings = {}
    with log_stage(logger, "classification", timings):
        ...
"""

import logging
import logging.handlers
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

import colorama
from colorama import Fore, Style

from invoice_parser.utils.helpers import elapsed_ms

colorama.init()

# Application logger namespace
LOGGER_NAMESPACE = "invoice_parser"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that colors the level name.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Red (bold)

    The record itself is left untouched, so file handlers sharing it
    still write plain text.
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(record.levelno)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _level(name: str) -> int:
    """Numeric level for a level name such as "debug" or "WARNING"."""
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _console_handler(level: int, log_format: str, date_format: str, colorize: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter_cls = ColoredFormatter if colorize else logging.Formatter
    handler.setFormatter(formatter_cls(log_format, datefmt=date_format))
    return handler


def _file_handler(level: int, log_format: str, date_format: str, log_file: str,
                  max_bytes: int, backup_count: int) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    return handler


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True
) -> logging.Logger:
    """
    Configure the application logger.

    Replaces any handlers installed by an earlier call, so it is safe to
    call more than once.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Record format; DEFAULT_FORMAT when omitted.
        date_format: Timestamp format; DEFAULT_DATE_FORMAT when omitted.
        log_file: Path of a rotating log file. No file logging if None.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of rotated files to keep.
        colorize: Whether to color console level names.

    Returns:
        The "invoice_parser" logger.

    Raises:
        ValueError: For an unknown level name.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/invoice_parser.log")
    """
    numeric_level = _level(level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    app_logger.setLevel(numeric_level)

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    app_logger.addHandler(_console_handler(numeric_level, log_format, date_format, colorize))
    if log_file:
        app_logger.addHandler(
            _file_handler(numeric_level, log_format, date_format, log_file, max_bytes, backup_count)
        )

    app_logger.propagate = False
    app_logger.debug(f"Logging initialized (level={level.upper()}, file={log_file or 'none'})")
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for one module, inside the application namespace.

    Args:
        name: Typically __name__.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Classification started")
    """
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


@contextmanager
def log_stage(logger: logging.Logger, stage: str,
              timings: Optional[Dict[str, float]] = None) -> Iterator[None]:
    """
    Time one pipeline stage.

    The elapsed milliseconds are stored under the stage name in timings,
    also when the stage raises.

    Args:
        logger: Logger that reports the timing.
        stage: Stage name, used as the timings key.
        timings: Dictionary collecting stage times.

    Example:
        >>> with log_stage(logger, "validation", stage_times):
        ...     result = engine.validate(invoice)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = elapsed_ms(start)
        if timings is not None:
            timings[stage] = elapsed
        logger.debug(f"Stage {stage} took {elapsed} ms")


def setup_logger_from_config() -> logging.Logger:
    """
    Configure logging from the "logging" section of the settings.

    Returns:
        The configured application logger.
    """
    from config import get_config

    log_file = get_config("logging.file.path") if get_config("logging.file.enabled", False) else None

    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
