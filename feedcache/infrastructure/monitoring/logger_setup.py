"""Centralized logging configuration for the feedcache application.

Configures the root logger once per process: a console handler (rich when
attached to a terminal, plain otherwise) and an optional rotating file handler.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = None
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def resolve_log_level(level: Union[int, str, None]) -> int:
    """Accepts logging constants or names ('debug', 'INFO'); unknown names fall back to the default."""
    if isinstance(level, int):
        return level
    if not level:
        return DEFAULT_LOG_LEVEL
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else DEFAULT_LOG_LEVEL


def setup_logging(
    log_level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    use_rich: Optional[bool] = None,
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (constant or name).
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output (rotated at 5 MB).
        use_rich: Force the rich console handler on/off. Defaults to on for a TTY.
    """
    level = resolve_log_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if use_rich is None:
        use_rich = sys.stderr.isatty()

    console_handler: logging.Handler
    if use_rich:
        console_handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
        console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        # Logs go to stderr so command output on stdout stays clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(log_format))
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
            )
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}", exc_info=True)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")

    logging.debug(f"Logging configured. Level={logging.getLevelName(level)}")
