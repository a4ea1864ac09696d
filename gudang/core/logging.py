"""
Gudang Logging Configuration
Centralized logging setup for the application
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import settings


def setup_logging(
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Configure logging for the application

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to files, defaults to settings.LOG_TO_FILE
        log_to_console: Whether to log to console

    Returns:
        Configured root application logger
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    if log_to_file is None:
        log_to_file = settings.LOG_TO_FILE

    logger = logging.getLogger("gudang")
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s() - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_dir = None
    if log_to_file:
        log_dir = settings.LOG_DIR
        log_dir.mkdir(exist_ok=True, parents=True)

        app_handler = logging.handlers.RotatingFileHandler(
            log_dir / settings.LOG_FILE,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        app_handler.setLevel(level)
        app_handler.setFormatter(detailed_formatter)
        logger.addHandler(app_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / settings.ERROR_LOG_FILE,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)
        logger.addHandler(error_handler)

    setup_module_loggers(level, detailed_formatter, log_dir)

    return logger


def setup_module_loggers(
    level: int,
    file_formatter: logging.Formatter,
    log_dir: Optional[Path] = None
):
    """Setup loggers for specific modules"""

    for name, filename in (
        ("gudang.database", "database.log"),
        ("gudang.api", "api.log"),
        ("gudang.business", "business.log"),
    ):
        module_logger = logging.getLogger(name)
        module_logger.setLevel(level)
        module_logger.handlers.clear()
        if log_dir:
            handler = logging.handlers.RotatingFileHandler(
                log_dir / filename,
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8"
            )
            handler.setFormatter(file_formatter)
            module_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name"""
    return logging.getLogger(f"gudang.{name}")


__all__ = [
    "setup_logging",
    "get_logger",
]
