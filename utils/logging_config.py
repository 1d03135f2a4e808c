"""
Logging configuration for the Tender Portal Monitor.

Writes to a rotating log file and mirrors everything to stdout so a
long-running monitor can be followed from the console.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are far too chatty at DEBUG
NOISY_LOGGERS = ("selenium", "urllib3", "WDM")


def setup_logging(
    log_file: str = "data/monitor.log",
    log_level: str = "INFO",
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    console_output: bool = True,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        log_file: Path to the log file
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of rotated files to keep
        console_output: Whether to also log to stdout

    Returns:
        Configured root logger
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # setup_logging may be called again after a config reload
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return root_logger


def setup_logging_from_config(
    config: Dict[str, Any],
    log_level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure logging from the ``general`` section of the config.

    Args:
        config: Full configuration dictionary
        log_level: Overrides ``general.log_level`` when given (e.g. --verbose)

    Returns:
        Configured root logger
    """
    general = config.get("general", {})
    return setup_logging(
        log_file=general.get("log_file", "data/monitor.log"),
        log_level=log_level or general.get("log_level", "INFO"),
        max_bytes=general.get("log_max_bytes", 10 * 1024 * 1024),
        backup_count=general.get("log_backup_count", 5),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (usually ``__name__``)."""
    return logging.getLogger(name)
