# usft_rest_client/common/logger.py
"""
Logging configuration for the usft_rest_client package.

Provides centralized logging setup so every module logger (created with
logging.getLogger(__name__)) shares one format and set of handlers.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from usft_rest_client.config import LoggingConfig

__all__: list[str] = ['PACKAGE_LOGGER_NAME', 'setup_logger']

PACKAGE_LOGGER_NAME: str = 'usft_rest_client'


def setup_logger(
    logging_level: int | None = None,
    config: LoggingConfig | None = None,
) -> logging.Logger:
    """
    Set up logging for the usft_rest_client package.

    The function is idempotent: calling it again clears and rebuilds the
    handlers, so the service can reapply logging settings after a
    configuration reload.

    Args:
        logging_level: Console level to use when no config is provided.
            Defaults to INFO.
        config: Validated logging configuration. If provided:
                - Console logging uses config.console_level
                - File logging is enabled if config.file_path is set, with
                  rotation at config.max_bytes
                - The 'logging_level' argument is ignored.

    Returns:
        The package-level logger ('usft_rest_client').

    Example:
        >>> setup_logger(logging_level=logging.DEBUG)

        >>> config = load_config()
        >>> setup_logger(config=config.logging)
    """
    package_logger: logging.Logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    for existing_handler in list(package_logger.handlers):
        package_logger.removeHandler(existing_handler)
        existing_handler.close()

    log_format: logging.Formatter = logging.Formatter(
        fmt='%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    # --- 1. Console Handler ---
    if logging_level is None:
        logging_level = logging.INFO
    if config:
        console_level: int = config.get_console_level_int()
    else:
        console_level = logging_level

    console_handler: logging.Handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_format)
    console_handler.setLevel(console_level)
    package_logger.addHandler(console_handler)

    # --- 2. Rotating File Handler (Config Only) ---
    file_level: int | None = config.get_file_level_int() if config else None

    if config and config.file_path and file_level is not None:
        log_file_path: Path = config.file_path
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler: RotatingFileHandler = RotatingFileHandler(
            filename=str(log_file_path),
            mode='a',
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding='utf-8',
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(file_level)
        package_logger.addHandler(file_handler)

        if console_level <= logging.INFO:
            print(f'Logging to file: {log_file_path}', file=sys.stderr)

    # --- 3. Package Logger Level ---
    # Must be the most verbose of all handler levels.
    effective_level: int = console_level
    if file_level is not None:
        effective_level = min(console_level, file_level)

    package_logger.setLevel(effective_level)

    return package_logger
