# usft_rest_client/__init__.py
"""
USFT REST Client - API client, history downloader and location poller.

This package provides three layers for working with the USFT vehicle
tracking API:

1. **API Client**: Typed access to every resource
   - UsftClient exposes get/list/create/update/delete per resource
   - Requests are HMAC-SHA512 signed (or HTTP Basic over https)
   - Every failure surfaces as RestError with an ErrorKind tag
   - Optional child-account impersonation on every call

2. **History Downloader**: Bulk location history
   - HistoryFetcher splits long ranges into hourly chunks on large fleets
   - Results are written to CSV by LocationCsvWriter

3. **Location Poller**: Scheduled snapshots
   - PollingLoop fetches current locations on an interval and writes CSV
   - PollingService adds a pid file, signal handling and live config reload

Quick Start - API Client:
    >>> from usft_rest_client import Credentials, UsftClient
    >>>
    >>> with UsftClient(Credentials(username='fleet', secret='key')) as client:
    ...     for location in client.get_device_locations():
    ...         print(location.device_id, location.latitude, location.longitude)

Quick Start - History:
    >>> from usft_rest_client import HistoryFetcher
    >>> rows = HistoryFetcher(client).fetch(start, end)

Quick Start - Poller:
    $ usft-rest-client init-config
    $ usft-rest-client run
"""

__version__ = '0.1.0'

from usft_rest_client.api import UsftClient
from usft_rest_client.client import (
    DEFAULT_BASE_URL,
    ErrorKind,
    RequestExecutor,
    RestError,
)
from usft_rest_client.common import (
    LocationCsvWriter,
    locations_to_dataframe,
    setup_logger,
)
from usft_rest_client.config import ReloadableConfig, UsftConfig, load_config
from usft_rest_client.history import HistoryFetcher, plan_windows
from usft_rest_client.models import (
    Account,
    AuthenticationMode,
    Credentials,
    Location,
    UsftEndpoints,
)
from usft_rest_client.polling import LoopState, PollingLoop
from usft_rest_client.service import (
    PollingService,
    ServiceNotRunningError,
    request_refresh,
)

__all__: list[str] = [
    'DEFAULT_BASE_URL',
    'Account',
    'AuthenticationMode',
    'Credentials',
    'ErrorKind',
    'HistoryFetcher',
    'Location',
    'LocationCsvWriter',
    'LoopState',
    'PollingLoop',
    'PollingService',
    'ReloadableConfig',
    'RequestExecutor',
    'RestError',
    'ServiceNotRunningError',
    'UsftClient',
    'UsftConfig',
    'UsftEndpoints',
    '__version__',
    'load_config',
    'locations_to_dataframe',
    'plan_windows',
    'request_refresh',
    'setup_logger',
]
