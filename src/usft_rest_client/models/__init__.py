# usft_rest_client/models/__init__.py

from usft_rest_client.models.endpoints import (
    EndpointDefinition,
    UsftEndpoints,
    account_query,
    format_api_timestamp,
)
from usft_rest_client.models.records import (
    Account,
    Address,
    AddressFence,
    AddressGroup,
    Alert,
    AlertLog,
    Device,
    DeviceLocation,
    DeviceMessage,
    Dispatch,
    FenceType,
    FenceUnit,
    Location,
    LoginToken,
    RecordBase,
    ReportRequest,
    ReportStatus,
    ReportType,
    ServiceCall,
    Vehicle,
)
from usft_rest_client.models.request_models import (
    AuthenticationMode,
    Credentials,
    HTTPMethod,
)

__all__: list[str] = [
    'Account',
    'Address',
    'AddressFence',
    'AddressGroup',
    'Alert',
    'AlertLog',
    'AuthenticationMode',
    'Credentials',
    'Device',
    'DeviceLocation',
    'DeviceMessage',
    'Dispatch',
    'EndpointDefinition',
    'FenceType',
    'FenceUnit',
    'HTTPMethod',
    'Location',
    'LoginToken',
    'RecordBase',
    'ReportRequest',
    'ReportStatus',
    'ReportType',
    'ServiceCall',
    'UsftEndpoints',
    'Vehicle',
    'account_query',
    'format_api_timestamp',
]
