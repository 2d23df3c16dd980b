# usft_rest_client/history.py
"""
Chunked retrieval of location history.

A single historyfromto request over a long range on a large fleet can take
longer than the server allows. HistoryFetcher probes the fleet size and, for
large fleets, splits the range into fixed-width windows requested one after
another.

Windowing:
----------
Windows are ``[cursor, cursor + chunk - 1s]`` while more than one chunk
remains, then a final ``[cursor, end]``. For a 3601 second range with one
hour chunks:

    [00:00:00, 00:59:59]  [01:00:00, 01:00:01]

Each window is requested after the previous one returns. The first failure
propagates and later windows are never requested.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Final, Self

from usft_rest_client.api import UsftClient
from usft_rest_client.config import HistoryConfig
from usft_rest_client.models import Account, Location

__all__: list[str] = [
    'DEFAULT_CHUNK_SIZE',
    'DEFAULT_LARGE_FLEET_THRESHOLD',
    'DIRECT_WINDOW',
    'HistoryFetcher',
    'plan_windows',
]

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_LARGE_FLEET_THRESHOLD: Final[int] = 50
DEFAULT_CHUNK_SIZE: Final[timedelta] = timedelta(hours=1)
# Ranges up to this long are always requested directly, whatever the chunk size.
DIRECT_WINDOW: Final[timedelta] = timedelta(hours=1)

_ONE_SECOND: Final[timedelta] = timedelta(seconds=1)

type Window = tuple[datetime, datetime]


def plan_windows(
    start: datetime,
    end: datetime,
    chunk_size: timedelta = DEFAULT_CHUNK_SIZE,
) -> list[Window]:
    """
    Split [start, end] into request windows.

    Pure function. The last window always ends exactly at ``end``.

    Raises:
        ValueError: If start is after end or chunk_size is not positive.
    """
    if start > end:
        raise ValueError(f'start ({start}) must not be after end ({end})')
    if chunk_size <= timedelta(0):
        raise ValueError(f'chunk_size must be positive, got {chunk_size}')

    windows: list[Window] = []
    cursor: datetime = start
    while end - cursor > chunk_size:
        windows.append((cursor, cursor + chunk_size - _ONE_SECOND))
        cursor += chunk_size
    windows.append((cursor, end))
    return windows


class HistoryFetcher:
    """
    Retrieves location history, chunking long ranges on large fleets.

    Example:
        >>> fetcher = HistoryFetcher(client)
        >>> rows = fetcher.fetch(datetime(2026, 10, 1, tzinfo=UTC),
        ...                      datetime(2026, 10, 2, tzinfo=UTC))
    """

    def __init__(
        self,
        client: UsftClient,
        large_fleet_threshold: int = DEFAULT_LARGE_FLEET_THRESHOLD,
        chunk_size: timedelta = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """
        Args:
            client: Client used for the probe and history requests.
            large_fleet_threshold: Chunk when the probe returns more devices.
            chunk_size: Width of one request window.
        """
        self._client: UsftClient = client
        self._large_fleet_threshold: int = large_fleet_threshold
        self._chunk_size: timedelta = chunk_size

    @classmethod
    def from_config(cls, client: UsftClient, history_config: HistoryConfig) -> Self:
        """Build a fetcher from the history section of the configuration."""
        return cls(
            client,
            large_fleet_threshold=history_config.large_fleet_threshold,
            chunk_size=timedelta(minutes=history_config.chunk_minutes),
        )

    def plan_windows(self, start: datetime, end: datetime) -> list[Window]:
        """Windows for [start, end] using this fetcher's chunk size."""
        return plan_windows(start, end, self._chunk_size)

    def should_chunk(
        self, start: datetime, end: datetime, account: Account | None = None
    ) -> bool:
        """
        Decide whether [start, end] needs chunking.

        Ranges no longer than DIRECT_WINDOW never do and cost no probe. Otherwise
        the current device locations are fetched and counted.
        """
        if end - start <= DIRECT_WINDOW:
            return False

        fleet_size: int = len(self._client.get_device_locations(account=account))
        if fleet_size > self._large_fleet_threshold:
            logger.info(
                'Large account detected (%d devices); requesting history in %s chunks',
                fleet_size,
                self._chunk_size,
            )
            return True

        logger.debug('Fleet of %d devices; requesting history directly', fleet_size)
        return False

    def fetch(
        self,
        start: datetime,
        end: datetime,
        account: Account | None = None,
        device_ids: Sequence[int] | None = None,
        interval: int | None = None,
    ) -> list[Location]:
        """
        Retrieve all history between start and end.

        Args:
            start: Range start (inclusive).
            end: Range end (inclusive).
            account: Optional impersonation context.
            device_ids: Restrict to these devices.
            interval: Optional reporting interval.

        Returns:
            Locations from every window, concatenated in request order.

        Raises:
            ValueError: If start is after end.
            RestError: From the probe or the first failing window.
        """
        if start > end:
            raise ValueError(f'start ({start}) must not be after end ({end})')

        if not self.should_chunk(start, end, account):
            logger.info('Requesting history %s to %s', start, end)
            return self._client.get_history_from_to(
                start, end, device_ids=device_ids, interval=interval, account=account
            )

        windows: list[Window] = self.plan_windows(start, end)
        results: list[Location] = []
        for index, (window_start, window_end) in enumerate(windows, start=1):
            logger.info(
                'Requesting %s to %s (chunk %d of %d)',
                window_start,
                window_end,
                index,
                len(windows),
            )
            results.extend(
                self._client.get_history_from_to(
                    window_start,
                    window_end,
                    device_ids=device_ids,
                    interval=interval,
                    account=account,
                )
            )

        logger.info('Retrieved %d history rows in %d chunks', len(results), len(windows))
        return results
