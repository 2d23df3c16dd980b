"""
Shared pytest fixtures for usft_rest_client tests.

This module provides reusable fixtures for common test scenarios across
all test modules. Fixtures are automatically discovered by pytest.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path

import pytest

from tests.helpers import FIXED_NOW, Handler, RecordingTransport, location_payload
from usft_rest_client.api import UsftClient
from usft_rest_client.client import RequestExecutor
from usft_rest_client.common.logger import PACKAGE_LOGGER_NAME
from usft_rest_client.config import (
    ApiConfig,
    LoggingConfig,
    OutputConfig,
    PollingConfig,
    UsftConfig,
)
from usft_rest_client.models import AuthenticationMode, Credentials, Location

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def temp_csv_file(temp_dir: Path) -> Path:
    """Provide path to a temporary CSV file (not created)."""
    return temp_dir / 'locations.csv'


@pytest.fixture
def credentials() -> Credentials:
    """Provide USFT-mode credentials."""
    return Credentials(
        username='fleetuser',
        secret='secret-api-key',  # pyright: ignore[reportArgumentType]
    )


@pytest.fixture
def basic_credentials() -> Credentials:
    """Provide Basic-mode credentials."""
    return Credentials(
        username='fleetuser',
        secret='password',  # pyright: ignore[reportArgumentType]
        mode=AuthenticationMode.BASIC,
    )


@pytest.fixture
def api_config() -> ApiConfig:
    """Provide a configured ApiConfig."""
    return ApiConfig(
        username='fleetuser',
        api_key='secret-api-key',  # pyright: ignore[reportArgumentType]
        base_url='https://api.example.com/v1',
        request_timeout=(5, 10),
    )


@pytest.fixture
def usft_config(api_config: ApiConfig, temp_csv_file: Path) -> UsftConfig:
    """Provide a complete, configured UsftConfig with fast polling."""
    return UsftConfig(
        api=api_config,
        polling=PollingConfig(interval_seconds=0.05, idle_check_seconds=0.01),
        output=OutputConfig(file_path=temp_csv_file),
        logging=LoggingConfig(console_level='WARNING'),
    )


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_timestamp() -> datetime:
    """Provide a fixed timestamp for deterministic testing."""
    return FIXED_NOW


@pytest.fixture
def sample_location() -> Location:
    """Provide a single parsed Location."""
    return Location.model_validate(location_payload(1001))


@pytest.fixture
def sample_locations() -> list[Location]:
    """Provide three parsed Locations with distinct device ids."""
    return [Location.model_validate(location_payload(1000 + i)) for i in range(3)]


# =============================================================================
# HTTP Mock Fixtures
# =============================================================================


@pytest.fixture
def make_executor(
    credentials: Credentials,
) -> Callable[..., tuple[RequestExecutor, RecordingTransport]]:
    """Provide a factory for executors wired to a recording mock transport."""

    def _make(
        handler: Handler,
        base_url: str = 'https://api.example.com/v1',
        executor_credentials: Credentials | None = None,
    ) -> tuple[RequestExecutor, RecordingTransport]:
        transport = RecordingTransport(handler)
        executor = RequestExecutor(
            executor_credentials or credentials,
            base_url=base_url,
            clock=lambda: FIXED_NOW,
            transport=transport,
        )
        return executor, transport

    return _make


@pytest.fixture
def make_client(
    make_executor: Callable[..., tuple[RequestExecutor, RecordingTransport]],
) -> Callable[[Handler], tuple[UsftClient, RecordingTransport]]:
    """Provide a factory for UsftClients wired to a recording mock transport."""

    def _make(handler: Handler) -> tuple[UsftClient, RecordingTransport]:
        executor, transport = make_executor(handler)
        return UsftClient(executor=executor), transport

    return _make


# =============================================================================
# Logging Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Remove handlers that setup_logger() attached during a test."""
    yield
    package_logger: logging.Logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
