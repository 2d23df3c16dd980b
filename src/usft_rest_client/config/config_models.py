# usft_rest_client/config/config_models.py
"""
Configuration models for the USFT client, poller and history downloader.

Design Decisions:
-----------------
- All models use `extra='forbid'` so a misspelled YAML key fails at load time
  instead of being silently ignored.

- Every field has a default. A missing or empty configuration file yields a
  valid but unconfigured UsftConfig; the poller waits in that state until
  credentials appear.

- Blank username or api_key values are normalized to None. "Not configured
  yet" is a normal state for a freshly installed service, not an error.

- No logging occurs within this module because the logging configuration
  itself is defined here.

- SecretStr is used for the API key so it never shows up in repr() or logs.

Usage:
------
    import yaml
    from usft_rest_client.config.config_models import UsftConfig

    with open('usft_config.yaml', encoding='utf-8') as config_file:
        raw_config = yaml.safe_load(config_file) or {}

    config = UsftConfig.model_validate(raw_config)
"""

from pathlib import Path
from typing import Any, Literal, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

from usft_rest_client.models.request_models import AuthenticationMode, Credentials

# =============================================================================
# Public API
# =============================================================================

__all__: list[str] = [
    'DEFAULT_API_BASE_URL',
    'ApiConfig',
    'ColumnSelection',
    'HistoryConfig',
    'LogLevelName',
    'LoggingConfig',
    'OutputConfig',
    'PollingConfig',
    'ServiceConfig',
    'UsftConfig',
]

# =============================================================================
# Type Aliases
# =============================================================================

LogLevelName = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

LOG_LEVEL_VALUES: frozenset[int] = frozenset({10, 20, 30, 40, 50})

LOG_LEVEL_NAME_TO_INT: dict[LogLevelName, int] = {
    'DEBUG': 10,
    'INFO': 20,
    'WARNING': 30,
    'ERROR': 40,
    'CRITICAL': 50,
}

DEFAULT_API_BASE_URL: str = 'https://api.usft.com/v1'


def _blank_to_none(value: Any) -> Any:
    """Map empty or whitespace-only strings to None."""
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# =============================================================================
# API Configuration
# =============================================================================


class ApiConfig(BaseModel):
    """Connection and credential settings for the USFT API.

    SSL/TLS Handling:
        verify_ssl accepts True (default CA bundle), False (verification off,
        development only) or a path to a custom CA bundle. use_truststore
        takes precedence and verifies against the OS certificate store.

    Attributes:
        username: Account login. None until configured.
        api_key: API key (USFT mode) or password (basic mode). None until
            configured.
        auth_mode: 'usft' for HMAC-signed requests, 'basic' for HTTP Basic.
        base_url: API root; trailing slashes are removed.
        request_timeout: [connect, read] timeouts in seconds.
        verify_ssl: SSL verification mode.
        use_truststore: Verify against the operating system trust store.
    """

    model_config = ConfigDict(extra='forbid')

    username: str | None = Field(
        default=None,
        description='Account login name; blank means not configured',
    )
    api_key: SecretStr | None = Field(
        default=None,
        description='API key (masked in logs and repr); blank means not configured',
    )
    auth_mode: AuthenticationMode = Field(
        default=AuthenticationMode.USFT,
        description="'usft' (HMAC-SHA512 signature) or 'basic'",
    )
    base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        description='API root URL with scheme, without trailing slash',
    )
    request_timeout: tuple[int, int] = Field(
        default=(30, 120),
        description='[connect_timeout, read_timeout] in seconds; both must be positive',
    )
    verify_ssl: bool | str = Field(
        default=True,
        description='False to disable SSL, True for default CA, or path to CA bundle',
    )
    use_truststore: bool = Field(
        default=False,
        description='Use the truststore library for OS system CA certificates',
    )

    @field_validator('username', 'api_key', mode='before')
    @classmethod
    def normalize_blank_credentials(cls, value: Any) -> Any:
        """Treat blank credentials as not configured."""
        return _blank_to_none(value)

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, base_url: str) -> str:
        """Require an http(s) scheme and strip trailing slashes."""
        if not base_url:
            raise ValueError('base_url cannot be empty')

        if not base_url.startswith(('http://', 'https://')):
            raise ValueError(
                f"base_url must start with 'http://' or 'https://', got: {base_url!r}"
            )

        return base_url.rstrip('/')

    @field_validator('request_timeout')
    @classmethod
    def validate_timeout_values_positive(
        cls, timeout: tuple[int, int]
    ) -> tuple[int, int]:
        """Ensure both timeout values are positive."""
        connect_timeout, read_timeout = timeout

        if connect_timeout <= 0:
            raise ValueError(
                f'connect_timeout must be positive, got: {connect_timeout}'
            )
        if read_timeout <= 0:
            raise ValueError(f'read_timeout must be positive, got: {read_timeout}')

        return timeout

    @field_validator('verify_ssl')
    @classmethod
    def validate_ssl_configuration(cls, verify_ssl: bool | str) -> bool | str:
        """Ensure a CA bundle path, when given, points at an existing file."""
        if isinstance(verify_ssl, str):
            cert_path = Path(verify_ssl)

            if not cert_path.exists():
                raise ValueError(f'SSL certificate bundle file not found: {verify_ssl}')
            if not cert_path.is_file():
                raise ValueError(
                    f'SSL certificate path must be a file, not directory: {verify_ssl}'
                )

        return verify_ssl

    @property
    def is_configured(self) -> bool:
        """True once both username and api_key are present."""
        return self.username is not None and self.api_key is not None

    def to_credentials(self) -> Credentials:
        """
        Build client Credentials from these settings.

        Raises:
            ValueError: If username or api_key is missing.
        """
        if self.username is None:
            raise ValueError('Username required.')
        if self.api_key is None:
            raise ValueError('ApiKey required.')
        return Credentials(
            username=self.username,
            secret=self.api_key,
            mode=self.auth_mode,
        )


# =============================================================================
# Polling Configuration
# =============================================================================


class PollingConfig(BaseModel):
    """Timing of the location polling loop.

    Attributes:
        interval_seconds: Time between the starts of two fetch cycles.
        idle_check_seconds: How often to recheck the configuration while
            credentials are missing.
    """

    model_config = ConfigDict(extra='forbid')

    interval_seconds: float = Field(
        default=60.0,
        gt=0.0,
        le=86400.0,
        description='Seconds between location fetches',
    )
    idle_check_seconds: float = Field(
        default=0.2,
        gt=0.0,
        le=3600.0,
        description='Seconds between configuration checks while unconfigured',
    )


# =============================================================================
# Output Configuration
# =============================================================================


class ColumnSelection(BaseModel):
    """Which columns the location CSV contains. All are on by default."""

    model_config = ConfigDict(extra='forbid')

    serial: bool = True
    name: bool = True
    latitude: bool = True
    longitude: bool = True
    heading: bool = True
    velocity: bool = True
    satellites: bool = True
    ignition: bool = True
    last_moved: bool = True
    last_updated: bool = True
    output_flags: bool = True


class OutputConfig(BaseModel):
    """Where and how the poller writes location snapshots.

    Attributes:
        file_path: CSV file, replaced on every successful cycle.
        columns: Column toggles.
        timestamp_format: strftime pattern for LastMoved/LastUpdated. None
            uses the US general date/time form (``10/20/2026 1:05:09 PM``).
    """

    model_config = ConfigDict(extra='forbid')

    file_path: Path = Field(
        default=Path('locations.csv'),
        description='Target CSV file for location snapshots',
    )
    columns: ColumnSelection = Field(default_factory=ColumnSelection)
    timestamp_format: str | None = Field(
        default=None,
        description='strftime pattern for timestamps; None for M/D/YYYY h:mm:ss AM',
    )

    @field_validator('timestamp_format', mode='before')
    @classmethod
    def normalize_blank_format(cls, value: Any) -> Any:
        """Treat a blank pattern as the default format."""
        return _blank_to_none(value)


# =============================================================================
# History Configuration
# =============================================================================


class HistoryConfig(BaseModel):
    """Tuning for chunked history downloads.

    Attributes:
        large_fleet_threshold: Fleets with more devices than this download
            long ranges in chunks.
        chunk_minutes: Width of one chunk.
        interval: Optional reporting interval passed to the history endpoint.
        output_path: Default CSV destination for the history command.
    """

    model_config = ConfigDict(extra='forbid')

    large_fleet_threshold: int = Field(default=50, ge=0)
    chunk_minutes: int = Field(default=60, ge=1, le=1440)
    interval: int | None = Field(default=None, ge=0)
    output_path: Path = Field(default=Path('history.csv'))


# =============================================================================
# Service Configuration
# =============================================================================


class ServiceConfig(BaseModel):
    """Settings for the long-running poller process."""

    model_config = ConfigDict(extra='forbid')

    pid_file: Path = Field(
        default=Path('usft-poller.pid'),
        description='File holding the pid of the running poller',
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Configuration for application logging output.

    Console output is always enabled. File output is enabled by providing a
    file_path and rotates once the file reaches max_bytes, keeping
    backup_count old files.

    Attributes:
        file_path: Log file path (.log appended if missing). None disables it.
        console_level: Minimum level for console output.
        file_level: Minimum level for file output. Defaults to DEBUG when
            file_path is set.
        max_bytes: Rotation size for the log file.
        backup_count: Number of rotated files to keep.
    """

    model_config = ConfigDict(extra='forbid')

    file_path: Path | None = Field(
        default=None,
        description='Log file path (.log extension auto-added). None disables file logging.',
    )
    console_level: LogLevelName | int = Field(
        default='INFO',
        description="Console log level: 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL', or int",
    )
    file_level: LogLevelName | int | None = Field(
        default=None,
        description='File log level. None disables file logging.',
    )
    max_bytes: int = Field(
        default=5_000_000,
        ge=0,
        description='Rotate the log file at this size; 0 disables rotation',
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        description='Number of rotated log files to keep',
    )

    @field_validator('file_path', mode='before')
    @classmethod
    def normalize_log_file_path(cls, path_value: str | Path | None) -> Path | None:
        """Normalize path and ensure .log extension."""
        if path_value is None:
            return None

        path_string: str = str(path_value)

        if not path_string.lower().endswith('.log'):
            path_string = f'{path_string}.log'

        return Path(path_string)

    @field_validator('console_level', 'file_level', mode='after')
    @classmethod
    def validate_numeric_log_level(
        cls, level_value: LogLevelName | int | None
    ) -> LogLevelName | int | None:
        """Ensure numeric levels match Python's standard logging constants."""
        if level_value is None or isinstance(level_value, str):
            return level_value

        if level_value not in LOG_LEVEL_VALUES:
            raise ValueError(
                f'Numeric log level must be one of {sorted(LOG_LEVEL_VALUES)}, '
                f'got: {level_value}'
            )

        return level_value

    @model_validator(mode='after')
    def ensure_file_logging_configuration_consistency(self) -> Self:
        """Default file_level to DEBUG; reject file_level without file_path."""
        has_file_path: bool = self.file_path is not None
        has_file_level: bool = self.file_level is not None

        if has_file_path and not has_file_level:
            self.file_level = 'DEBUG'

        if has_file_level and not has_file_path:
            raise ValueError(
                'file_level is specified but file_path is missing. '
                'Provide file_path to enable file logging, or remove file_level.'
            )

        return self

    def get_console_level_int(self) -> int:
        """Convert console_level to a numeric logging level."""
        if isinstance(self.console_level, int):
            return self.console_level
        return LOG_LEVEL_NAME_TO_INT[self.console_level]

    def get_file_level_int(self) -> int | None:
        """Convert file_level to a numeric logging level, or None."""
        if self.file_level is None:
            return None
        if isinstance(self.file_level, int):
            return self.file_level
        return LOG_LEVEL_NAME_TO_INT[self.file_level]


# =============================================================================
# Root Configuration
# =============================================================================


class UsftConfig(BaseModel):
    """Root configuration model.

    Every section is optional, so ``UsftConfig()`` is the valid
    "installed but not configured" state.

    Loading Example:
    ```python
        from usft_rest_client.config import load_config

        config = load_config('config/usft_config.yaml')
        if config.is_configured:
            client = UsftClient.from_config(config.api)
    ```

    Attributes:
        api: Credentials and connection settings.
        polling: Poll loop timing.
        output: Location CSV settings.
        history: History download tuning.
        service: Long-running process settings.
        logging: Console and file logging.
    """

    model_config = ConfigDict(extra='forbid')

    api: ApiConfig = Field(default_factory=ApiConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_configured(self) -> bool:
        """True once API credentials are present."""
        return self.api.is_configured
