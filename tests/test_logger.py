"""
Tests for usft_rest_client.common.logger module.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from usft_rest_client.common.logger import PACKAGE_LOGGER_NAME, setup_logger
from usft_rest_client.config import LoggingConfig


class TestSetupLogger:
    """Test setup_logger()."""

    def test_console_only_by_default(self) -> None:
        package_logger: logging.Logger = setup_logger()

        assert package_logger.name == PACKAGE_LOGGER_NAME

        assert len(package_logger.handlers) == 1

        assert package_logger.level == logging.INFO

    def test_explicit_level(self) -> None:
        assert setup_logger(logging_level=logging.DEBUG).level == logging.DEBUG

    def test_rotating_file_handler(self, temp_dir: Path) -> None:
        config = LoggingConfig(
            file_path=temp_dir / 'logs' / 'usft',
            console_level='WARNING',
            max_bytes=1024,
            backup_count=2,
        )

        package_logger: logging.Logger = setup_logger(config=config)

        file_handlers: list[RotatingFileHandler] = [
            handler
            for handler in package_logger.handlers
            if isinstance(handler, RotatingFileHandler)
        ]

        assert len(file_handlers) == 1

        assert file_handlers[0].maxBytes == 1024  # noqa: PLR2004

        assert file_handlers[0].backupCount == 2  # noqa: PLR2004

        assert package_logger.level == logging.DEBUG

        logging.getLogger('usft_rest_client.polling').debug('cycle done')

        file_handlers[0].flush()

        assert 'cycle done' in (temp_dir / 'logs' / 'usft.log').read_text(
            encoding='utf-8'
        )

    def test_repeated_setup_replaces_handlers(self) -> None:
        setup_logger()

        package_logger: logging.Logger = setup_logger()

        assert len(package_logger.handlers) == 1
