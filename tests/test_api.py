"""
Tests for usft_rest_client.api module.

Tests that each UsftClient operation maps to the right verb, path, query
and body, including impersonation and the device-filtered history calls.
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from tests.helpers import RecordingTransport, json_response, location_payload
from usft_rest_client.api import UsftClient
from usft_rest_client.client import ErrorKind, RestError
from usft_rest_client.config import ApiConfig
from usft_rest_client.models import (
    Account,
    Address,
    AddressFence,
    AddressGroup,
    Device,
    Location,
)

type ClientFactory = Callable[..., tuple[UsftClient, RecordingTransport]]


def _sent_path(transport: RecordingTransport) -> str:
    """Path and query of the single recorded request."""
    assert len(transport.requests) == 1
    return transport.requests[0].url.raw_path.decode('ascii')


class TestUsftClientInitialization:
    """Test UsftClient construction."""

    def test_requires_credentials_or_executor(self) -> None:
        with pytest.raises(ValueError, match='Either credentials or executor'):
            UsftClient()

    def test_from_config(self, api_config: ApiConfig) -> None:
        with UsftClient.from_config(api_config) as client:
            assert client.executor.base_url == 'https://api.example.com/v1'

            assert client.executor.credentials.username == 'fleetuser'

    def test_from_unconfigured_config(self) -> None:
        with pytest.raises(ValueError, match='Username required'):
            UsftClient.from_config(ApiConfig())


class TestUtilities:
    """Test the connection test and server time calls."""

    def test_test_connection(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: httpx.Response(200, text='OK'))

        assert client.test_connection() is True

        assert _sent_path(transport) == '/v1/Test'

    def test_test_connection_bad_credentials(self, make_client: ClientFactory) -> None:
        client, _ = make_client(
            lambda _req: json_response({'Message': 'Invalid signature'}, 401)
        )

        with pytest.raises(RestError) as exc_info:
            client.test_connection()

        assert exc_info.value.is_authentication_failure is True

    def test_server_time_unauthenticated(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda _req: json_response('2026-10-20T12:00:00Z')
        )

        assert client.server_time() == datetime(2026, 10, 20, 12, 0, tzinfo=UTC)

        assert 'Authorization' not in transport.requests[0].headers


class TestReadOperations:
    """Test get-one and get-all operations."""

    def test_get_device_locations(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda _req: json_response([location_payload(1), location_payload(2)])
        )

        locations: list[Location] = client.get_device_locations()

        assert len(locations) == 2  # noqa: PLR2004

        assert transport.requests[0].method == 'GET'

        assert _sent_path(transport) == '/v1/Location'

    def test_get_device(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda _req: json_response({'DeviceId': 5, 'DeviceName': 'Truck 5'})
        )

        device: Device = client.get_device(5)

        assert device.device_name == 'Truck 5'

        assert _sent_path(transport) == '/v1/Device/5'

    def test_impersonation(self, make_client: ClientFactory) -> None:
        """Should scope the call to the child account."""

        client, transport = make_client(lambda _req: json_response([]))

        client.get_devices(account=Account(account_id=42))

        assert _sent_path(transport) == '/v1/Device?account=42'

    def test_impersonation_after_existing_query(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response({'DeviceId': 5}))

        client.get_vehicle(5, account=Account(account_id=42))

        assert _sent_path(transport) == '/v1/Vehicle?deviceid=5&account=42'

    def test_addresses_by_group_record(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response([]))

        client.get_addresses_by_group(AddressGroup(address_group_id=8))

        assert _sent_path(transport) == '/v1/Address?f=bygroup&fid=8'

    def test_address_fences_unfiltered(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response([]))

        client.get_address_fences()

        assert _sent_path(transport) == '/v1/AddressFence'

    def test_address_fences_filtered(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda _req: json_response([{'AddressFenceId': 1, 'AddressId': 4}])
        )

        fences: list[AddressFence] = client.get_address_fences(address_id=4)

        assert fences[0].address_id == 4  # noqa: PLR2004

        assert _sent_path(transport) == '/v1/AddressFence?addressid=4&alertid=0'

    def test_alerts_by_type(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response([]))

        client.get_alerts(alert_type='Speed')

        assert _sent_path(transport) == '/v1/Alert?alerttype=Speed'

    def test_service_calls_by_status(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response([]))

        client.get_service_calls(status='Open')

        assert _sent_path(transport) == '/v1/ServiceCall?status=Open'

    def test_get_account_defaults_to_this(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response({'AccountId': 7}))

        assert client.get_account().account_id == 7  # noqa: PLR2004

        assert _sent_path(transport) == '/v1/Account/this'


class TestWriteOperations:
    """Test create, update and delete operations."""

    def test_create_address_posts_body(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda request: json_response({**json.loads(request.content), 'AddressId': 11})
        )

        created: Address = client.create_address(Address(name='Depot', latitude=40.0))

        request: httpx.Request = transport.requests[0]

        assert request.method == 'POST'

        assert json.loads(request.content)['Name'] == 'Depot'

        assert created.address_id == 11  # noqa: PLR2004

    def test_update_address_uses_id_in_path(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response({'AddressId': 11}))

        client.update_address(Address(address_id=11, name='Depot'))

        assert transport.requests[0].method == 'PUT'

        assert _sent_path(transport) == '/v1/Address/11'

    @pytest.mark.parametrize('target', [11, Address(address_id=11)])
    def test_delete_accepts_id_or_record(
        self, make_client: ClientFactory, target: int | Address
    ) -> None:
        client, transport = make_client(lambda _req: json_response(True))

        assert client.delete_address(target) is True

        assert transport.requests[0].method == 'DELETE'

        assert _sent_path(transport) == '/v1/Address/11'

    def test_delete_failure_raises(self, make_client: ClientFactory) -> None:
        client, _ = make_client(
            lambda _req: json_response({'Message': 'Address not found'}, 404)
        )

        with pytest.raises(RestError) as exc_info:
            client.delete_address(11)

        assert exc_info.value.kind is ErrorKind.SERVER_MESSAGE

        assert str(exc_info.value) == '/v1/Address/11 returned 404: Address not found'


class TestHistory:
    """Test the immediate report history calls."""

    def test_history_24(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response([]))

        client.get_history_24()

        assert transport.requests[0].method == 'GET'

        assert _sent_path(transport) == '/v1/ImmediateReport/history24'

    def test_history_24_for_devices(self, make_client: ClientFactory) -> None:
        """Should POST the device ids as a JSON array."""

        client, transport = make_client(lambda _req: json_response([]))

        client.get_history_24(device_ids=[1, 2])

        assert transport.requests[0].method == 'POST'

        assert json.loads(transport.requests[0].content) == [1, 2]

    def test_history_from_to(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda _req: json_response([location_payload(1)])
        )

        rows: list[Location] = client.get_history_from_to(
            datetime(2026, 10, 20, 12, 0, tzinfo=UTC),
            datetime(2026, 10, 20, 13, 0, tzinfo=UTC),
            interval=5,
        )

        assert len(rows) == 1

        assert _sent_path(transport) == (
            '/v1/ImmediateReport/historyfromto'
            '?from=2026-10-20T12%3A00%3A00.000Z'
            '&to=2026-10-20T13%3A00%3A00.000Z'
            '&interval=5'
        )

    def test_history_from_to_for_devices(self, make_client: ClientFactory) -> None:
        client, transport = make_client(lambda _req: json_response([]))

        client.get_history_from_to(
            datetime(2026, 10, 20, 12, 0, tzinfo=UTC),
            datetime(2026, 10, 20, 13, 0, tzinfo=UTC),
            device_ids=[7],
            account=Account(account_id=42),
        )

        request: httpx.Request = transport.requests[0]

        assert request.method == 'POST'

        assert json.loads(request.content) == [7]

        assert request.url.raw_path.decode('ascii').endswith('&account=42')


class TestReports:
    """Test report request download."""

    def test_download_report_returns_bytes(self, make_client: ClientFactory) -> None:
        client, transport = make_client(
            lambda _req: httpx.Response(200, content=b'PK\x03\x04xlsx')
        )

        content: bytes = client.download_report(3)

        assert content == b'PK\x03\x04xlsx'

        assert _sent_path(transport) == '/v1/ReportRequest/3?download=xlsx'
