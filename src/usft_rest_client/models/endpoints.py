# usft_rest_client/models/endpoints.py
"""
Declarative endpoint catalog for the USFT API.

Each logical operation (read/list/create/update/delete per resource) is an
EndpointDefinition: an HTTP verb plus a path template. Templates use named
``{placeholders}`` for path segments and query values; placeholder values are
serialized and URL-encoded by `build_path`.

Impersonation:
    Every endpoint can be scoped to a child account by appending
    ``account=<id>``. Whether that goes after ``?`` or ``&`` is fixed per
    endpoint by whether its template already carries a query string; it is
    not decided per call.
"""

import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Final
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from usft_rest_client.models.records import Account
from usft_rest_client.models.request_models import HTTPMethod

__all__: list[str] = [
    'EndpointDefinition',
    'UsftEndpoints',
    'account_query',
    'format_api_timestamp',
]

logger: logging.Logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN: Final[re.Pattern[str]] = re.compile(r'{(\w+)}')


def format_api_timestamp(moment: datetime) -> str:
    """
    Render a datetime as the UTC timestamp the history endpoints expect.

    Format is ``yyyy-MM-ddTHH:mm:ss.fffZ``. Naive datetimes are interpreted
    as local time.
    """
    utc_moment: datetime = moment.astimezone(UTC)
    milliseconds: int = utc_moment.microsecond // 1000
    return f'{utc_moment:%Y-%m-%dT%H:%M:%S}.{milliseconds:03d}Z'


def account_query(account: Account | None, is_additional: bool) -> str:
    """
    Build the impersonation query fragment for an optional account.

    Args:
        account: Child account to act as. None or account_id 0 means the
            caller's own account.
        is_additional: True when the path already has a query string.

    Returns:
        '?account=<id>', '&account=<id>', or '' when no impersonation applies.
    """
    if account is None or account.account_id == 0:
        return ''
    separator: str = '&' if is_additional else '?'
    return f'{separator}account={account.account_id}'


class EndpointDefinition(BaseModel):
    """
    Static description of one API operation.

    Attributes:
        path_template: Path relative to the API base, with optional
            ``{name}`` placeholders in segments or query values.
        http_method: HTTP verb for the operation.
        requires_body: Whether the request carries a JSON body.
        authenticated: False only for the unauthenticated server time probe.
        description: Human-readable summary.
    """

    model_config = ConfigDict(extra='forbid', frozen=True)

    path_template: str
    http_method: HTTPMethod = HTTPMethod.GET
    requires_body: bool = False
    authenticated: bool = True
    description: str = ''

    @field_validator('path_template')
    @classmethod
    def validate_path_template(cls, path_template: str) -> str:
        """Ensure the template is non-empty and starts with a slash."""
        if not path_template:
            raise ValueError('path_template cannot be empty')
        if not path_template.startswith('/'):
            path_template = f'/{path_template}'
        return path_template

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_query(self) -> bool:
        """Whether the template already carries a query string."""
        return '?' in self.path_template

    @property
    def placeholder_names(self) -> tuple[str, ...]:
        """Names of all placeholders in template order."""
        return tuple(PLACEHOLDER_PATTERN.findall(self.path_template))

    def build_path(self, account: Account | None = None, **params: Any) -> str:
        """
        Resolve the template into a request path.

        Args:
            account: Optional impersonation context.
            **params: A value for every placeholder. None renders as an empty
                value, which the API treats as "no filter".

        Returns:
            Path (with query) relative to the API base URL.

        Raises:
            ValueError: If a placeholder has no value.

        Example:
            >>> UsftEndpoints.ADDRESS_READ.build_path(address_id=7, account=child)
            '/Address/7?account=42'
        """

        def substitute(match: re.Match[str]) -> str:
            name: str = match.group(1)
            if name not in params:
                raise ValueError(f'Missing required path parameter: {name}')
            return self._serialize_parameter_value(params[name])

        resolved_path: str = PLACEHOLDER_PATTERN.sub(substitute, self.path_template)
        return resolved_path + account_query(account, self.has_query)

    def _serialize_parameter_value(self, value: Any) -> str:
        """Serialize and URL-encode one placeholder value."""
        if value is None:
            return ''

        handler_map: dict[type, Callable[[Any], str]] = {
            bool: self._serialize_boolean,
            datetime: format_api_timestamp,
        }
        handler: Callable[[Any], str] = str
        for value_type, type_handler in handler_map.items():
            if isinstance(value, value_type):
                handler = type_handler
                break

        if isinstance(value, Enum):
            value = value.value

        return quote(handler(value), safe='')

    def _serialize_boolean(self, value: Any) -> str:
        """Serialize booleans to lowercase literals."""
        return 'true' if value else 'false'


# =============================================================================
# Catalog
# =============================================================================


def _read(path: str, description: str) -> EndpointDefinition:
    return EndpointDefinition(
        path_template=path, http_method=HTTPMethod.GET, description=description
    )


def _create(path: str, description: str) -> EndpointDefinition:
    return EndpointDefinition(
        path_template=path,
        http_method=HTTPMethod.POST,
        requires_body=True,
        description=description,
    )


def _update(path: str, description: str) -> EndpointDefinition:
    return EndpointDefinition(
        path_template=path,
        http_method=HTTPMethod.PUT,
        requires_body=True,
        description=description,
    )


def _delete(path: str, description: str) -> EndpointDefinition:
    return EndpointDefinition(
        path_template=path, http_method=HTTPMethod.DELETE, description=description
    )


class UsftEndpoints:
    """
    Registry of all USFT API endpoint definitions.

    Usage:
        >>> endpoint = UsftEndpoints.LOCATION_READ_ALL
        >>> endpoint.build_path()
        '/Location'
        >>> endpoint.http_method
        <HTTPMethod.GET: 'GET'>
    """

    # Utilities
    TEST = _read('/Test', 'Verify credentials and connectivity')
    TIME = EndpointDefinition(
        path_template='/Time',
        authenticated=False,
        description='Current server time (unauthenticated)',
    )

    # Devices
    DEVICE_READ = _read('/Device/{device_id}', 'Get one device')
    DEVICE_READ_ALL = _read('/Device', 'List devices viewable by the account')
    DEVICE_CREATE = _create('/Device', 'Register a device')
    DEVICE_UPDATE = _update('/Device', 'Update device name and colors')

    # Vehicles
    VEHICLE_READ = _read('/Vehicle?deviceid={device_id}', 'Get vehicle for a device')
    VEHICLE_READ_ALL = _read('/Vehicle', 'List vehicles')
    VEHICLE_UPDATE = _update('/Vehicle', 'Update vehicle details')

    # Locations
    LOCATION_READ = _read('/Location/{device_id}', 'Latest location for a device')
    LOCATION_READ_ALL = _read('/Location', 'Latest location for every device')
    LOCATION_UPDATE = _update('/Location', 'Update a location record')
    LOCATION_DELETE = _delete('/Location/{device_id}', 'Delete a location record')

    # Addresses
    ADDRESS_READ = _read('/Address/{address_id}', 'Get one address')
    ADDRESS_READ_ALL = _read('/Address', 'List addresses')
    ADDRESS_READ_BY_GROUP = _read(
        '/Address?f=bygroup&fid={address_group_id}', 'List addresses in a group'
    )
    ADDRESS_CREATE = _create('/Address', 'Create an address')
    ADDRESS_UPDATE = _update('/Address/{address_id}', 'Update an address')
    ADDRESS_DELETE = _delete('/Address/{address_id}', 'Delete an address')

    # Address groups
    ADDRESS_GROUP_READ = _read('/AddressGroup/{address_group_id}', 'Get one group')
    ADDRESS_GROUP_READ_ALL = _read('/AddressGroup', 'List address groups')
    ADDRESS_GROUP_CREATE = _create('/AddressGroup', 'Create an address group')
    ADDRESS_GROUP_UPDATE = _update(
        '/AddressGroup/{address_group_id}', 'Update an address group'
    )
    ADDRESS_GROUP_DELETE = _delete(
        '/AddressGroup/{address_group_id}', 'Delete an address group'
    )

    # Address fences
    ADDRESS_FENCE_READ = _read('/AddressFence/{address_fence_id}', 'Get one fence')
    ADDRESS_FENCE_READ_ALL = _read('/AddressFence', 'List address fences')
    ADDRESS_FENCE_READ_FILTERED = _read(
        '/AddressFence?addressid={address_id}&alertid={alert_id}',
        'List address fences by address and/or alert',
    )
    ADDRESS_FENCE_CREATE = _create('/AddressFence', 'Create an address fence')
    ADDRESS_FENCE_UPDATE = _update('/AddressFence', 'Update an address fence')
    ADDRESS_FENCE_DELETE = _delete(
        '/AddressFence/{address_fence_id}', 'Delete an address fence'
    )

    # Alerts
    ALERT_READ = _read('/Alert/{alert_id}', 'Get one alert')
    ALERT_READ_ALL = _read('/Alert', 'List alerts')
    ALERT_READ_BY_TYPE = _read('/Alert?alerttype={alert_type}', 'List alerts by type')
    ALERT_CREATE = _create('/Alert', 'Create an alert')
    ALERT_UPDATE = _update('/Alert', 'Update an alert')
    ALERT_DELETE = _delete('/Alert/{alert_id}', 'Delete an alert')

    ALERT_LOG_READ_ALL = _read(
        '/AlertLog?alertid={alert_id}&deviceid={device_id}'
        '&canenterexit={can_enter_exit}&exiting={exiting}'
        '&startutc={start_utc}&endutc={end_utc}&alerttype={alert_type}',
        'Search triggered alert events',
    )

    # Device messages
    DEVICE_MESSAGE_READ = _read(
        '/DeviceMessage/{device_message_id}', 'Get one device message'
    )
    DEVICE_MESSAGE_READ_ALL = _read('/DeviceMessage', 'List device messages')
    DEVICE_MESSAGE_READ_FILTERED = _read(
        '/DeviceMessage?type={message_type}&status={message_status}',
        'List device messages by type and/or status',
    )
    DEVICE_MESSAGE_SEND = _create('/DeviceMessage', 'Send a message to a device')

    # Dispatch
    DISPATCH_READ = _read('/Dispatch/{dispatch_id}', 'Get one dispatch')
    DISPATCH_READ_ALL = _read('/Dispatch', 'List dispatches')
    DISPATCH_CREATE = _create('/Dispatch', 'Create a dispatch')

    # Service calls
    SERVICE_CALL_READ = _read('/ServiceCall/{service_call_id}', 'Get one service call')
    SERVICE_CALL_READ_ALL = _read('/ServiceCall', 'List service calls')
    SERVICE_CALL_READ_BY_STATUS = _read(
        '/ServiceCall?status={status}', 'List service calls by status'
    )
    SERVICE_CALL_CREATE = _create('/ServiceCall', 'Create a service call')
    SERVICE_CALL_UPDATE = _update('/ServiceCall', 'Update a service call')
    SERVICE_CALL_DELETE = _delete(
        '/ServiceCall/{service_call_id}', 'Delete a service call'
    )

    # Immediate reports (location history)
    HISTORY_24 = _read('/ImmediateReport/history24', 'Last 24 hours of history')
    HISTORY_24_FOR_DEVICES = _create(
        '/ImmediateReport/history24', 'Last 24 hours of history for listed devices'
    )
    HISTORY_FROM_TO = _read(
        '/ImmediateReport/historyfromto?from={start}&to={end}&interval={interval}',
        'History between two timestamps',
    )
    HISTORY_FROM_TO_FOR_DEVICES = _create(
        '/ImmediateReport/historyfromto?from={start}&to={end}&interval={interval}',
        'History between two timestamps for listed devices',
    )

    # Report requests
    REPORT_REQUEST_READ = _read(
        '/ReportRequest/{report_request_id}', 'Get one report request'
    )
    REPORT_REQUEST_READ_ALL = _read('/ReportRequest', 'List report requests')
    REPORT_REQUEST_CREATE = _create('/ReportRequest', 'Queue a report')
    REPORT_REQUEST_DOWNLOAD = _read(
        '/ReportRequest/{report_request_id}?download=xlsx',
        'Download a processed report as xlsx',
    )

    # Accounts
    ACCOUNT_READ = _read('/Account/{account_id}', 'Get one account')
    ACCOUNT_READ_ALL = _read('/Account', 'List viewable accounts')
    LOGIN_TOKEN_READ = _read('/LoginToken/{account_id}', 'Issue a web login token')

    @classmethod
    def get_all_endpoints(cls) -> dict[str, EndpointDefinition]:
        """Return all endpoint definitions keyed by attribute name."""
        return {
            name: value
            for name, value in vars(cls).items()
            if isinstance(value, EndpointDefinition)
        }
