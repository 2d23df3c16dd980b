"""
Configuration package for the USFT REST client.

Exposes the configuration models, the one-shot loader and the live
ReloadableConfig provider used by the poller.
"""

from usft_rest_client.config.config_models import (
    DEFAULT_API_BASE_URL,
    ApiConfig,
    ColumnSelection,
    HistoryConfig,
    LoggingConfig,
    OutputConfig,
    PollingConfig,
    ServiceConfig,
    UsftConfig,
)
from usft_rest_client.config.loader import (
    DEFAULT_CONFIG_PATH,
    ReloadableConfig,
    load_config,
    write_default_config,
)

__all__: list[str] = [
    'DEFAULT_API_BASE_URL',
    'DEFAULT_CONFIG_PATH',
    'ApiConfig',
    'ColumnSelection',
    'HistoryConfig',
    'LoggingConfig',
    'OutputConfig',
    'PollingConfig',
    'ReloadableConfig',
    'ServiceConfig',
    'UsftConfig',
    'load_config',
    'write_default_config',
]
