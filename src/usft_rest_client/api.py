# usft_rest_client/api.py
"""
Typed operations for every USFT API resource.

UsftClient pairs each logical operation with its EndpointDefinition and runs
it through a RequestExecutor. All resources follow the same shape: get one,
get all (optionally filtered), create, update and delete. Delete methods take
either an id or the record itself and return the server's boolean answer.

Impersonation:
    Every method takes an optional ``account``. When it is given and its
    account_id is nonzero the call runs on behalf of that child account.

Usage:
------
    from usft_rest_client import UsftClient
    from usft_rest_client.config import load_config

    config = load_config('config/usft_config.yaml')
    with UsftClient.from_config(config.api) as client:
        for location in client.get_device_locations():
            print(location.device_id, location.latitude, location.longitude)
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from types import TracebackType
from typing import Any, Self

from usft_rest_client.client import DEFAULT_BASE_URL, RequestExecutor
from usft_rest_client.config import ApiConfig
from usft_rest_client.models import (
    Account,
    Address,
    AddressFence,
    AddressGroup,
    Alert,
    AlertLog,
    Credentials,
    Device,
    DeviceMessage,
    Dispatch,
    EndpointDefinition,
    Location,
    LoginToken,
    ReportRequest,
    ServiceCall,
    UsftEndpoints,
    Vehicle,
)

__all__: list[str] = ['UsftClient']

logger: logging.Logger = logging.getLogger(__name__)


def _record_id(value: int | Any, attribute: str) -> int:
    """Accept a bare id or a record carrying it."""
    if isinstance(value, int):
        return value
    return int(getattr(value, attribute))


class UsftClient:
    """
    Client for the USFT vehicle tracking API.

    Thread Safety:
        Safe to share between threads; see RequestExecutor.

    Example:
        >>> credentials = Credentials(username='fleet', secret='key')
        >>> with UsftClient(credentials) as client:
        ...     client.test_connection()
        True
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        base_url: str = DEFAULT_BASE_URL,
        executor: RequestExecutor | None = None,
        **executor_options: Any,
    ) -> None:
        """
        Args:
            credentials: Used to build a RequestExecutor when none is given.
            base_url: API root for the built executor.
            executor: Pre-built executor (e.g. with a mock transport).
            **executor_options: Extra RequestExecutor arguments (timeout,
                verify_ssl, use_truststore, clock, transport).

        Raises:
            ValueError: If neither credentials nor executor is provided.
        """
        if executor is None:
            if credentials is None:
                raise ValueError('Either credentials or executor is required')
            executor = RequestExecutor(credentials, base_url=base_url, **executor_options)
        self._executor: RequestExecutor = executor

    @classmethod
    def from_config(cls, api_config: ApiConfig) -> Self:
        """
        Build a client from the api section of the configuration.

        Raises:
            ValueError: If username or api_key is not configured.
        """
        return cls(
            credentials=api_config.to_credentials(),
            base_url=api_config.base_url,
            timeout=api_config.request_timeout,
            verify_ssl=api_config.verify_ssl,
            use_truststore=api_config.use_truststore,
        )

    @property
    def executor(self) -> RequestExecutor:
        """The underlying request executor."""
        return self._executor

    def close(self) -> None:
        """Release the HTTP connection pool."""
        self._executor.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _call[T](
        self,
        endpoint: EndpointDefinition,
        response_type: type[T] | Any,
        account: Account | None = None,
        body: Any = None,
        **params: Any,
    ) -> T:
        """Resolve an endpoint's path and run it through the executor."""
        path: str = endpoint.build_path(account=account, **params)
        return self._executor.retrieve(
            path,
            response_type,
            method=endpoint.http_method,
            body=body,
            authenticate=endpoint.authenticated,
        )

    # =========================================================================
    # Utilities
    # =========================================================================

    def test_connection(self, account: Account | None = None) -> bool:
        """
        Verify credentials and connectivity.

        Returns:
            True when /Test answers 200.

        Raises:
            RestError: If the request fails (e.g. 401 for bad credentials).
        """
        path: str = UsftEndpoints.TEST.build_path(account=account)
        self._executor.send(path, method=UsftEndpoints.TEST.http_method)
        return True

    def server_time(self) -> datetime:
        """Current server time. Sent without authentication."""
        return self._call(UsftEndpoints.TIME, datetime)

    # =========================================================================
    # Devices and Vehicles
    # =========================================================================

    def get_device(self, device_id: int, account: Account | None = None) -> Device:
        return self._call(UsftEndpoints.DEVICE_READ, Device, account, device_id=device_id)

    def get_devices(self, account: Account | None = None) -> list[Device]:
        return self._call(UsftEndpoints.DEVICE_READ_ALL, list[Device], account)

    def create_device(self, device: Device, account: Account | None = None) -> Device:
        """Create a virtual device (restricted to contracted customers)."""
        return self._call(UsftEndpoints.DEVICE_CREATE, Device, account, body=device)

    def update_device(self, device: Device, account: Account | None = None) -> Device:
        """Update name and colors; the server ignores other changes."""
        return self._call(UsftEndpoints.DEVICE_UPDATE, Device, account, body=device)

    def get_vehicle(self, device_id: int, account: Account | None = None) -> Vehicle:
        return self._call(
            UsftEndpoints.VEHICLE_READ, Vehicle, account, device_id=device_id
        )

    def get_vehicles(self, account: Account | None = None) -> list[Vehicle]:
        return self._call(UsftEndpoints.VEHICLE_READ_ALL, list[Vehicle], account)

    def update_vehicle(
        self, vehicle: Vehicle, account: Account | None = None
    ) -> Vehicle:
        return self._call(UsftEndpoints.VEHICLE_UPDATE, Vehicle, account, body=vehicle)

    # =========================================================================
    # Locations
    # =========================================================================

    def get_device_locations(self, account: Account | None = None) -> list[Location]:
        """Latest location of every device viewable by the account."""
        return self._call(UsftEndpoints.LOCATION_READ_ALL, list[Location], account)

    def get_device_location(
        self, device_id: int, account: Account | None = None
    ) -> Location:
        return self._call(
            UsftEndpoints.LOCATION_READ, Location, account, device_id=device_id
        )

    def update_device_location(
        self, location: Location, account: Account | None = None
    ) -> bool:
        return self._call(UsftEndpoints.LOCATION_UPDATE, bool, account, body=location)

    def delete_device_location(
        self, location: int | Location, account: Account | None = None
    ) -> bool:
        return self._call(
            UsftEndpoints.LOCATION_DELETE,
            bool,
            account,
            device_id=_record_id(location, 'device_id'),
        )

    # =========================================================================
    # Addresses
    # =========================================================================

    def get_address(self, address_id: int, account: Account | None = None) -> Address:
        return self._call(
            UsftEndpoints.ADDRESS_READ, Address, account, address_id=address_id
        )

    def get_addresses(self, account: Account | None = None) -> list[Address]:
        return self._call(UsftEndpoints.ADDRESS_READ_ALL, list[Address], account)

    def get_addresses_by_group(
        self, group: int | AddressGroup, account: Account | None = None
    ) -> list[Address]:
        return self._call(
            UsftEndpoints.ADDRESS_READ_BY_GROUP,
            list[Address],
            account,
            address_group_id=_record_id(group, 'address_group_id'),
        )

    def create_address(self, address: Address, account: Account | None = None) -> Address:
        return self._call(UsftEndpoints.ADDRESS_CREATE, Address, account, body=address)

    def update_address(self, address: Address, account: Account | None = None) -> Address:
        return self._call(
            UsftEndpoints.ADDRESS_UPDATE,
            Address,
            account,
            body=address,
            address_id=address.address_id,
        )

    def delete_address(
        self, address: int | Address, account: Account | None = None
    ) -> bool:
        return self._call(
            UsftEndpoints.ADDRESS_DELETE,
            bool,
            account,
            address_id=_record_id(address, 'address_id'),
        )

    # =========================================================================
    # Address Groups
    # =========================================================================

    def get_address_group(
        self, address_group_id: int, account: Account | None = None
    ) -> AddressGroup:
        return self._call(
            UsftEndpoints.ADDRESS_GROUP_READ,
            AddressGroup,
            account,
            address_group_id=address_group_id,
        )

    def get_address_groups(self, account: Account | None = None) -> list[AddressGroup]:
        return self._call(
            UsftEndpoints.ADDRESS_GROUP_READ_ALL, list[AddressGroup], account
        )

    def create_address_group(
        self, group: AddressGroup, account: Account | None = None
    ) -> AddressGroup:
        return self._call(
            UsftEndpoints.ADDRESS_GROUP_CREATE, AddressGroup, account, body=group
        )

    def update_address_group(
        self, group: AddressGroup, account: Account | None = None
    ) -> AddressGroup:
        return self._call(
            UsftEndpoints.ADDRESS_GROUP_UPDATE,
            AddressGroup,
            account,
            body=group,
            address_group_id=group.address_group_id,
        )

    def delete_address_group(
        self, group: int | AddressGroup, account: Account | None = None
    ) -> bool:
        return self._call(
            UsftEndpoints.ADDRESS_GROUP_DELETE,
            bool,
            account,
            address_group_id=_record_id(group, 'address_group_id'),
        )

    # =========================================================================
    # Address Fences
    # =========================================================================

    def get_address_fence(
        self, address_fence_id: int, account: Account | None = None
    ) -> AddressFence:
        return self._call(
            UsftEndpoints.ADDRESS_FENCE_READ,
            AddressFence,
            account,
            address_fence_id=address_fence_id,
        )

    def get_address_fences(
        self,
        address_id: int = 0,
        alert_id: int = 0,
        account: Account | None = None,
    ) -> list[AddressFence]:
        """
        List address fences, optionally filtered.

        Args:
            address_id: Only fences for this Address (0 for any).
            alert_id: Only the fence behind this Alert (0 for any).
            account: Optional impersonation context.
        """
        if address_id == 0 and alert_id == 0:
            return self._call(
                UsftEndpoints.ADDRESS_FENCE_READ_ALL, list[AddressFence], account
            )
        return self._call(
            UsftEndpoints.ADDRESS_FENCE_READ_FILTERED,
            list[AddressFence],
            account,
            address_id=address_id,
            alert_id=alert_id,
        )

    def create_address_fence(
        self, fence: AddressFence, account: Account | None = None
    ) -> AddressFence:
        """
        Create an address fence.

        fence.address_id must reference an existing Address and
        fence.alert_id must be 0; the server creates the backing Alert.
        """
        return self._call(
            UsftEndpoints.ADDRESS_FENCE_CREATE, AddressFence, account, body=fence
        )

    def update_address_fence(
        self, fence: AddressFence, account: Account | None = None
    ) -> AddressFence:
        return self._call(
            UsftEndpoints.ADDRESS_FENCE_UPDATE, AddressFence, account, body=fence
        )

    def delete_address_fence(
        self, fence: int | AddressFence, account: Account | None = None
    ) -> bool:
        return self._call(
            UsftEndpoints.ADDRESS_FENCE_DELETE,
            bool,
            account,
            address_fence_id=_record_id(fence, 'address_fence_id'),
        )

    # =========================================================================
    # Alerts and Alert Logs
    # =========================================================================

    def get_alert(self, alert_id: int, account: Account | None = None) -> Alert:
        return self._call(UsftEndpoints.ALERT_READ, Alert, account, alert_id=alert_id)

    def get_alerts(
        self, alert_type: str | None = None, account: Account | None = None
    ) -> list[Alert]:
        if not alert_type:
            return self._call(UsftEndpoints.ALERT_READ_ALL, list[Alert], account)
        return self._call(
            UsftEndpoints.ALERT_READ_BY_TYPE, list[Alert], account, alert_type=alert_type
        )

    def create_alert(self, alert: Alert, account: Account | None = None) -> Alert:
        return self._call(UsftEndpoints.ALERT_CREATE, Alert, account, body=alert)

    def update_alert(self, alert: Alert, account: Account | None = None) -> Alert:
        return self._call(UsftEndpoints.ALERT_UPDATE, Alert, account, body=alert)

    def delete_alert(self, alert: int | Alert, account: Account | None = None) -> bool:
        return self._call(
            UsftEndpoints.ALERT_DELETE,
            bool,
            account,
            alert_id=_record_id(alert, 'alert_id'),
        )

    def get_alert_logs(
        self,
        alert_id: int | None = None,
        device_id: int | None = None,
        can_enter_exit: bool | None = None,
        exiting: bool | None = None,
        start_utc: datetime | None = None,
        end_utc: datetime | None = None,
        alert_type: str | None = None,
        account: Account | None = None,
    ) -> list[AlertLog]:
        """
        Search triggered alert events.

        Every filter is optional; None sends an empty value, which the server
        treats as "any".
        """
        return self._call(
            UsftEndpoints.ALERT_LOG_READ_ALL,
            list[AlertLog],
            account,
            alert_id=alert_id,
            device_id=device_id,
            can_enter_exit=can_enter_exit,
            exiting=exiting,
            start_utc=start_utc,
            end_utc=end_utc,
            alert_type=alert_type,
        )

    # =========================================================================
    # Device Messages
    # =========================================================================

    def get_device_message(
        self, device_message_id: int, account: Account | None = None
    ) -> DeviceMessage:
        return self._call(
            UsftEndpoints.DEVICE_MESSAGE_READ,
            DeviceMessage,
            account,
            device_message_id=device_message_id,
        )

    def get_device_messages(
        self,
        message_type: int | None = None,
        message_status: int | None = None,
        account: Account | None = None,
    ) -> list[DeviceMessage]:
        if message_type is None and message_status is None:
            return self._call(
                UsftEndpoints.DEVICE_MESSAGE_READ_ALL, list[DeviceMessage], account
            )
        return self._call(
            UsftEndpoints.DEVICE_MESSAGE_READ_FILTERED,
            list[DeviceMessage],
            account,
            message_type=message_type,
            message_status=message_status,
        )

    def send_device_message(
        self, message: DeviceMessage, account: Account | None = None
    ) -> DeviceMessage:
        return self._call(
            UsftEndpoints.DEVICE_MESSAGE_SEND, DeviceMessage, account, body=message
        )

    # =========================================================================
    # Dispatch
    # =========================================================================

    def get_dispatch(self, dispatch_id: int, account: Account | None = None) -> Dispatch:
        return self._call(
            UsftEndpoints.DISPATCH_READ, Dispatch, account, dispatch_id=dispatch_id
        )

    def get_dispatches(self, account: Account | None = None) -> list[Dispatch]:
        return self._call(UsftEndpoints.DISPATCH_READ_ALL, list[Dispatch], account)

    def create_dispatch(
        self, dispatch: Dispatch, account: Account | None = None
    ) -> Dispatch:
        return self._call(UsftEndpoints.DISPATCH_CREATE, Dispatch, account, body=dispatch)

    # =========================================================================
    # Service Calls
    # =========================================================================

    def get_service_call(
        self, service_call_id: int, account: Account | None = None
    ) -> ServiceCall:
        return self._call(
            UsftEndpoints.SERVICE_CALL_READ,
            ServiceCall,
            account,
            service_call_id=service_call_id,
        )

    def get_service_calls(
        self, status: str | None = None, account: Account | None = None
    ) -> list[ServiceCall]:
        if not status:
            return self._call(
                UsftEndpoints.SERVICE_CALL_READ_ALL, list[ServiceCall], account
            )
        return self._call(
            UsftEndpoints.SERVICE_CALL_READ_BY_STATUS,
            list[ServiceCall],
            account,
            status=status,
        )

    def create_service_call(
        self, service_call: ServiceCall, account: Account | None = None
    ) -> ServiceCall:
        return self._call(
            UsftEndpoints.SERVICE_CALL_CREATE, ServiceCall, account, body=service_call
        )

    def update_service_call(
        self, service_call: ServiceCall, account: Account | None = None
    ) -> ServiceCall:
        return self._call(
            UsftEndpoints.SERVICE_CALL_UPDATE, ServiceCall, account, body=service_call
        )

    def delete_service_call(
        self, service_call: int | ServiceCall, account: Account | None = None
    ) -> bool:
        return self._call(
            UsftEndpoints.SERVICE_CALL_DELETE,
            bool,
            account,
            service_call_id=_record_id(service_call, 'service_call_id'),
        )

    # =========================================================================
    # Immediate Reports (history)
    # =========================================================================

    def get_history_24(
        self,
        device_ids: Sequence[int] | None = None,
        account: Account | None = None,
    ) -> list[Location]:
        """
        Location history for the last 24 hours.

        With device_ids the request becomes a POST whose body is the id list.
        """
        if not device_ids:
            return self._call(UsftEndpoints.HISTORY_24, list[Location], account)
        return self._call(
            UsftEndpoints.HISTORY_24_FOR_DEVICES,
            list[Location],
            account,
            body=list(device_ids),
        )

    def get_history_from_to(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        device_ids: Sequence[int] | None = None,
        interval: int | None = None,
        account: Account | None = None,
    ) -> list[Location]:
        """
        Location history between two timestamps.

        Timestamps go out as UTC ``yyyy-MM-ddTHH:mm:ss.fffZ``, URL-encoded.
        With device_ids the request becomes a POST whose body is the id list.
        Long ranges on large fleets should go through HistoryFetcher.
        """
        params: dict[str, Any] = {'start': start, 'end': end, 'interval': interval}
        if not device_ids:
            return self._call(
                UsftEndpoints.HISTORY_FROM_TO, list[Location], account, **params
            )
        return self._call(
            UsftEndpoints.HISTORY_FROM_TO_FOR_DEVICES,
            list[Location],
            account,
            body=list(device_ids),
            **params,
        )

    # =========================================================================
    # Report Requests
    # =========================================================================

    def get_report_request(
        self, report_request_id: int, account: Account | None = None
    ) -> ReportRequest:
        return self._call(
            UsftEndpoints.REPORT_REQUEST_READ,
            ReportRequest,
            account,
            report_request_id=report_request_id,
        )

    def get_report_requests(self, account: Account | None = None) -> list[ReportRequest]:
        return self._call(
            UsftEndpoints.REPORT_REQUEST_READ_ALL, list[ReportRequest], account
        )

    def create_report_request(
        self, report_request: ReportRequest, account: Account | None = None
    ) -> ReportRequest:
        return self._call(
            UsftEndpoints.REPORT_REQUEST_CREATE,
            ReportRequest,
            account,
            body=report_request,
        )

    def download_report(
        self, report_request: int | ReportRequest, account: Account | None = None
    ) -> bytes:
        """Download a processed report as raw xlsx bytes."""
        endpoint: EndpointDefinition = UsftEndpoints.REPORT_REQUEST_DOWNLOAD
        path: str = endpoint.build_path(
            account=account,
            report_request_id=_record_id(report_request, 'report_request_id'),
        )
        return self._executor.send(path, method=endpoint.http_method).content

    # =========================================================================
    # Accounts
    # =========================================================================

    def get_account(self, account_id: int | str = 'this') -> Account:
        """Fetch one account; 'this' means the authenticated account."""
        return self._call(UsftEndpoints.ACCOUNT_READ, Account, account_id=account_id)

    def get_accounts(self) -> list[Account]:
        """Accounts viewable by the authenticated account."""
        return self._call(UsftEndpoints.ACCOUNT_READ_ALL, list[Account])

    def get_login_token(self, account: int | Account) -> LoginToken:
        return self._call(
            UsftEndpoints.LOGIN_TOKEN_READ,
            LoginToken,
            account_id=_record_id(account, 'account_id'),
        )
