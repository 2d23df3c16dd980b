#!/usr/bin/env python3
"""
Usage examples for usft_rest_client.

This file walks from the lowest layer (a single signed request) up to the
long-running poller.
"""

from datetime import UTC, datetime, timedelta

from usft_rest_client.api import UsftClient
from usft_rest_client.config import UsftConfig
from usft_rest_client.models import Credentials, Location

# =============================================================================
# Level 1: RequestExecutor (one signed request)
# =============================================================================


def example_1_request_executor() -> None:
    """
    Lowest level: build and send one authenticated request.

    Use this for an endpoint the typed client does not cover yet.
    """
    from pydantic import SecretStr

    from usft_rest_client.client import RequestExecutor
    from usft_rest_client.models import UsftEndpoints

    credentials = Credentials(username='fleetuser', secret=SecretStr('your-api-key'))

    with RequestExecutor(credentials) as executor:
        path: str = UsftEndpoints.LOCATION_READ_ALL.build_path()
        locations: list[Location] = executor.retrieve(path, list[Location])
        print(f'{len(locations)} devices reporting')


# =============================================================================
# Level 2: UsftClient (typed resources)
# =============================================================================


def example_2_typed_client() -> None:
    """Typed operations, including acting on behalf of a child account."""
    from pydantic import SecretStr

    from usft_rest_client.models import Account, Address

    credentials = Credentials(username='fleetuser', secret=SecretStr('your-api-key'))

    with UsftClient(credentials) as client:
        client.test_connection()

        for account in client.get_accounts():
            print(f'{account.account_id}: {account.name}')

        child = Account(account_id=42)
        depot: Address = client.create_address(
            Address(name='North Depot', latitude=40.7128, longitude=-74.006),
            account=child,
        )
        print(f'Created address {depot.address_id} in account 42')
        client.delete_address(depot, account=child)


# =============================================================================
# Level 3: History downloads
# =============================================================================


def example_3_history_to_csv(config: UsftConfig) -> None:
    """Download yesterday's history (chunked on large fleets) to CSV."""
    from usft_rest_client.common import LocationCsvWriter
    from usft_rest_client.history import HistoryFetcher

    end: datetime = datetime.now(UTC)
    start: datetime = end - timedelta(days=1)

    with UsftClient.from_config(config.api) as client:
        rows: list[Location] = HistoryFetcher.from_config(client, config.history).fetch(
            start, end
        )

    LocationCsvWriter(config.output).write(rows, path=config.history.output_path)
    print(f'Saved {len(rows)} rows to {config.history.output_path}')


def example_4_history_dataframe(config: UsftConfig) -> None:
    """Load the last 24 hours into a typed pandas DataFrame."""
    from usft_rest_client.common import locations_to_dataframe

    with UsftClient.from_config(config.api) as client:
        frame = locations_to_dataframe(client.get_history_24())

    print(frame.groupby('device_id')['velocity'].max())


# =============================================================================
# Level 4: Error handling
# =============================================================================


def example_5_error_handling(config: UsftConfig) -> None:
    """Branch on the kind of failure instead of parsing messages."""
    from usft_rest_client.client import ErrorKind, RestError

    try:
        with UsftClient.from_config(config.api) as client:
            client.get_device(999999)

    except RestError as exc:
        if exc.is_authentication_failure:
            print('Check username and api_key')
        elif exc.kind is ErrorKind.TRANSPORT:
            print('API unreachable; check network or proxy settings')
        else:
            print(f'API error {exc.status_code}: {exc}')
            if exc.response_body:
                print(f'Response: {exc.response_body[:500]}')


# =============================================================================
# Level 5: Poller
# =============================================================================


def example_6_polling_loop() -> None:
    """Run the poller in-process with a custom sink."""
    import time
    from collections.abc import Sequence

    from usft_rest_client.config import ReloadableConfig
    from usft_rest_client.polling import PollingLoop

    def print_sink(locations: Sequence[Location], _config: UsftConfig) -> None:
        print(f'{len(locations)} locations at {datetime.now(UTC):%H:%M:%S}')

    loop = PollingLoop(ReloadableConfig('config/usft_config.yaml'), sink=print_sink)
    loop.start()
    try:
        time.sleep(180)
    finally:
        loop.stop()


# =============================================================================
# Main
# =============================================================================


def main() -> None:
    """Show the configured connection and test it."""
    print('=' * 80)
    print('USFT REST Client - Usage Examples')
    print('=' * 80)

    from usft_rest_client.client import RestError
    from usft_rest_client.config import load_config

    try:
        config: UsftConfig = load_config('config/usft_config.yaml')
        print(f'Base URL: {config.api.base_url}')
        print(f'Configured: {config.is_configured}')

        if config.is_configured:
            with UsftClient.from_config(config.api) as client:
                client.test_connection()
                print(f'Server time: {client.server_time().isoformat()}')

    except FileNotFoundError:
        print('Config file not found. Run: usft-rest-client init-config')
    except (RestError, ValueError) as exc:
        print(f'Error: {exc}')


if __name__ == '__main__':
    main()
