# usft_rest_client/config/loader.py
"""
Configuration loading.

`load_config` reads one YAML file into a validated UsftConfig and fails loudly.
`ReloadableConfig` wraps it for the long-running poller: it is called once per
poll cycle, notices edits to the file, and never lets a bad edit take down a
running service.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import ValidationError

from usft_rest_client.config.config_models import UsftConfig

__all__: list[str] = [
    'DEFAULT_CONFIG_PATH',
    'ReloadableConfig',
    'load_config',
    'write_default_config',
]

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH: Final[Path] = Path('config/usft_config.yaml')


def load_config(config_path: Path | str | None = None) -> UsftConfig:
    """Load and validate configuration from a YAML file.

    An empty file is valid and yields the unconfigured defaults.

    Args:
        config_path: Path to the YAML file. Defaults to
            'config/usft_config.yaml' relative to the working directory.

    Returns:
        Validated UsftConfig instance.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the content fails validation.

    Example:
        >>> config = load_config('config/usft_config.yaml')
        >>> config.api.base_url
        'https://api.usft.com/v1'
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
        logger.debug('No config path provided, using default: %s', config_path)
    else:
        config_path = Path(config_path)

    logger.info('Loading configuration from: %s', config_path)

    if not config_path.exists():
        error_message: str = f'Configuration file not found: {config_path}'
        logger.error(error_message)
        raise FileNotFoundError(error_message)

    try:
        with config_path.open(encoding='utf-8') as config_file:
            raw_config_data: Any = yaml.safe_load(config_file)
    except yaml.YAMLError as error:
        error_message = f'Failed to parse YAML configuration: {error}'
        logger.error(error_message)
        raise yaml.YAMLError(error_message) from error

    if raw_config_data is None:
        raw_config_data = {}

    if not isinstance(raw_config_data, dict):
        error_message = (
            f'Configuration root must be a mapping, got {type(raw_config_data).__name__}'
        )
        logger.error(error_message)
        raise ValueError(error_message)

    try:
        validated_config = UsftConfig.model_validate(raw_config_data)
    except ValidationError as error:
        error_message = f'Configuration validation failed: {error}'
        logger.error(error_message)
        raise ValueError(error_message) from error

    logger.info('Configuration loaded and validated successfully')
    return validated_config


def write_default_config(config_path: Path | str, overwrite: bool = False) -> Path:
    """
    Write a commented starter configuration file.

    Raises:
        FileExistsError: If the file exists and overwrite is False.
    """
    config_path = Path(config_path)
    if config_path.exists() and not overwrite:
        raise FileExistsError(f'Configuration file already exists: {config_path}')

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding='utf-8')
    logger.info('Wrote starter configuration to %s', config_path)
    return config_path


class ReloadableConfig:
    """
    Live configuration provider for long-running processes.

    Calling the instance returns the current snapshot. The file is re-read
    when its modification time changes, or on refresh().

    Behavior:
        - File missing: the unconfigured default UsftConfig().
        - Reload fails (bad YAML, failed validation): the last good snapshot
          is kept and a warning is logged once per file change.

    Thread Safety:
        Reads and reloads are serialized with a lock; snapshots themselves
        are never mutated after load.

    Example:
        >>> provider = ReloadableConfig('config/usft_config.yaml')
        >>> loop = PollingLoop(provider)
    """

    def __init__(self, config_path: Path | str = DEFAULT_CONFIG_PATH) -> None:
        self._config_path: Path = Path(config_path)
        self._lock: threading.Lock = threading.Lock()
        self._snapshot: UsftConfig = UsftConfig()
        # None means "file absent at last check".
        self._loaded_mtime: float | None = None
        self._loaded_once: bool = False

    @property
    def config_path(self) -> Path:
        """Path of the watched configuration file."""
        return self._config_path

    def __call__(self) -> UsftConfig:
        return self.current()

    def current(self) -> UsftConfig:
        """Return the current snapshot, reloading if the file changed."""
        with self._lock:
            mtime: float | None = self._file_mtime()
            if not self._loaded_once or mtime != self._loaded_mtime:
                self._reload(mtime)
            return self._snapshot

    def refresh(self) -> UsftConfig:
        """Force a reload regardless of the modification time."""
        with self._lock:
            self._reload(self._file_mtime())
            return self._snapshot

    def _file_mtime(self) -> float | None:
        try:
            return self._config_path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as error:
            logger.warning(
                'Cannot stat %s (%s); keeping current configuration',
                self._config_path,
                error,
            )
            return self._loaded_mtime

    def _reload(self, mtime: float | None) -> None:
        self._loaded_once = True
        self._loaded_mtime = mtime

        if mtime is None:
            logger.debug(
                'Configuration file %s does not exist; using defaults',
                self._config_path,
            )
            self._snapshot = UsftConfig()
            return

        try:
            self._snapshot = load_config(self._config_path)
        except (OSError, yaml.YAMLError, ValueError) as error:
            logger.warning(
                'Keeping previous configuration; reload of %s failed: %s',
                self._config_path,
                error,
            )


_STARTER_CONFIG: Final[str] = """\
# USFT REST client configuration.
# Leave username/api_key blank until credentials are available; the poller
# waits until both are set and picks up edits without a restart.

api:
  username: ""
  api_key: ""
  auth_mode: usft          # usft (signed requests) or basic (https only)
  base_url: https://api.usft.com/v1
  request_timeout: [30, 120]
  verify_ssl: true
  use_truststore: false

polling:
  interval_seconds: 60
  idle_check_seconds: 0.2

output:
  file_path: locations.csv
  timestamp_format: null   # strftime pattern; null for 10/20/2026 1:05:09 PM
  columns:
    serial: true
    name: true
    latitude: true
    longitude: true
    heading: true
    velocity: true
    satellites: true
    ignition: true
    last_moved: true
    last_updated: true
    output_flags: true

history:
  large_fleet_threshold: 50
  chunk_minutes: 60
  interval: null
  output_path: history.csv

service:
  pid_file: usft-poller.pid

logging:
  console_level: INFO
  file_path: null
  max_bytes: 5000000
  backup_count: 3
"""
