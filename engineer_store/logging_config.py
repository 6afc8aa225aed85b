#!/usr/bin/env python3
"""
Centralized logging configuration for the engineer store.
Provides standardized logger lookup for all modules plus the
(level, category, message, error) sink used by callers.
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = "engineer_store"

# Mapping of module names to their component categories
COMPONENT_MAP = {
    'csv_store': 'store',
    'rw_lock': 'store',
    'file_lock': 'store',
    'access_executor': 'store',
    'record_builder': 'validation',
    'row_codec': 'validation',
    'duplicate_tracker': 'validation',
    'repository': 'repository',
    'cli': 'cli',
}

CONSOLE_FORMAT = '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - [%(levelname)s] - %(message)s'
ERROR_FORMAT = '%(asctime)s - %(name)s - [%(levelname)s] - [%(filename)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: Optional[str] = None, component: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (e.g., __name__)
        component: Component category ('store', 'validation', 'repository', 'cli').
                   If not provided, will be inferred from module name

    Returns:
        Logger instance under the engineer_store namespace
    """
    if name is None:
        name = 'main'

    module_base = name.split('.')[-1]

    if component is None:
        component = COMPONENT_MAP.get(module_base, 'main')

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}.{module_base}")


def setup_logging(log_dir: Optional[Union[str, Path]] = None,
                  log_level: str = "INFO",
                  console_level: str = "INFO",
                  file_level: str = "DEBUG",
                  max_bytes: int = 10 * 1024 * 1024,
                  backup_count: int = 5) -> logging.Logger:
    """
    Set up console and rotating file logging for the engineer store.

    Args:
        log_dir: Directory for log files. None keeps console logging only.
        log_level: Root logging level
        console_level: Console handler level
        file_level: File handler level
        max_bytes: Rotation threshold of the main log file
        backup_count: Number of rotated files to keep

    Returns:
        The package root logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        main_file_handler = logging.handlers.RotatingFileHandler(
            str(log_dir / "engineer_store.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        main_file_handler.setLevel(getattr(logging, file_level.upper()))
        main_file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(main_file_handler)

        # Error-only log file
        error_handler = logging.FileHandler(str(log_dir / "engineer_store_errors.log"), encoding='utf-8')
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(ERROR_FORMAT))
        root_logger.addHandler(error_handler)

    root_logger.propagate = False
    root_logger.debug(f"Logging initialized (log_dir={log_dir})")
    return root_logger


def setup_logging_from_config(config=None, log_level: Optional[str] = None) -> logging.Logger:
    """Set up logging from the `logging` and `paths` config sections."""
    if config is None:
        from .config import get_config
        config = get_config()

    section = config.get_section("logging")
    level = log_level or section.get("level", "INFO")
    return setup_logging(
        log_dir=config.get("paths.logs_dir"),
        log_level=level,
        console_level=log_level or section.get("console_level", "INFO"),
        file_level=section.get("file_level", "DEBUG"),
        max_bytes=section.get("max_bytes", 10 * 1024 * 1024),
        backup_count=section.get("backup_count", 5),
    )


def log_event(level: int, category: str, message: str,
              error: Optional[BaseException] = None) -> None:
    """
    Logger sink accepting (level, category, message, optional error).

    Args:
        level: logging level (logging.INFO, logging.WARNING, ...)
        category: Component category, e.g. 'system' or 'store'
        message: Human readable message
        error: Exception to attach with its traceback
    """
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
    if error is not None:
        logger.log(level, f"{message}: {error}", exc_info=(type(error), error, error.__traceback__))
    else:
        logger.log(level, message)


def log_operation_complete(logger: logging.Logger,
                           operation: str,
                           success: bool = True,
                           duration: Optional[float] = None,
                           **kwargs) -> None:
    """
    Log the completion of a major operation.

    Args:
        logger: Logger instance
        operation: Operation name
        success: Whether operation succeeded
        duration: Operation duration in seconds
        **kwargs: Additional results to log
    """
    status = "completed successfully" if success else "failed"
    duration_str = f" in {duration:.2f}s" if duration else ""

    log_func = logger.info if success else logger.error
    log_func(f"{operation} {status}{duration_str}")

    for key, value in kwargs.items():
        logger.debug(f"  {key}: {value}")
