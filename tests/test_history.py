"""
Tests for usft_rest_client.history module.

Tests window planning, the fleet-size probe and sequential chunk retrieval.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest

from tests.helpers import location_payload
from usft_rest_client.api import UsftClient
from usft_rest_client.client import ErrorKind, RestError
from usft_rest_client.config import HistoryConfig
from usft_rest_client.history import HistoryFetcher, plan_windows
from usft_rest_client.models import Account, Location

START: datetime = datetime(2026, 10, 20, 0, 0, 0, tzinfo=UTC)


def _locations(count: int) -> list[Location]:
    return [Location.model_validate(location_payload(index)) for index in range(count)]


def _mock_client(fleet_size: int) -> MagicMock:
    """Client whose probe returns fleet_size devices and history one row per call."""
    client = MagicMock(spec=UsftClient)
    client.get_device_locations.return_value = _locations(fleet_size)
    client.get_history_from_to.side_effect = (
        lambda start, end, **_kwargs: [  # pyright: ignore[reportUnknownLambdaType]
            Location.model_validate(
                location_payload(1, LastUpdated=start.isoformat())
            )
        ]
    )
    return client


class TestPlanWindows:
    """Test plan_windows()."""

    def test_exactly_one_chunk_is_single_window(self) -> None:
        end: datetime = START + timedelta(seconds=3600)

        assert plan_windows(START, end) == [(START, end)]

    def test_one_second_over_splits_in_two(self) -> None:
        """Should end the first window one second before the next starts."""

        end: datetime = START + timedelta(seconds=3601)

        assert plan_windows(START, end) == [
            (START, START + timedelta(minutes=59, seconds=59)),
            (START + timedelta(hours=1), end),
        ]

    def test_windows_are_contiguous_and_end_at_end(self) -> None:
        end: datetime = START + timedelta(hours=5, minutes=30)

        windows: list[tuple[datetime, datetime]] = plan_windows(START, end)

        assert len(windows) == 6  # noqa: PLR2004

        assert windows[0][0] == START

        assert windows[-1][1] == end

        for (_, previous_end), (next_start, _) in zip(windows, windows[1:], strict=False):
            assert next_start - previous_end == timedelta(seconds=1)

    def test_custom_chunk_size(self) -> None:
        end: datetime = START + timedelta(minutes=45)

        windows = plan_windows(START, end, chunk_size=timedelta(minutes=15))

        assert [window_start.minute for window_start, _ in windows] == [0, 15, 30]

    def test_zero_length_range(self) -> None:
        assert plan_windows(START, START) == [(START, START)]

    def test_start_after_end(self) -> None:
        with pytest.raises(ValueError, match='must not be after end'):
            plan_windows(START + timedelta(seconds=1), START)

    def test_non_positive_chunk(self) -> None:
        with pytest.raises(ValueError, match='chunk_size must be positive'):
            plan_windows(START, START, chunk_size=timedelta(0))


class TestShouldChunk:
    """Test HistoryFetcher.should_chunk()."""

    def test_short_range_skips_probe(self) -> None:
        client: MagicMock = _mock_client(500)

        fetcher = HistoryFetcher(client)

        assert fetcher.should_chunk(START, START + timedelta(hours=1)) is False

        client.get_device_locations.assert_not_called()

    def test_threshold_is_exclusive(self) -> None:
        """Should chunk only when the fleet exceeds the threshold."""

        end: datetime = START + timedelta(hours=2)

        assert HistoryFetcher(_mock_client(50)).should_chunk(START, end) is False

        assert HistoryFetcher(_mock_client(51)).should_chunk(START, end) is True

    def test_probe_uses_account(self) -> None:
        client: MagicMock = _mock_client(10)
        child = Account(account_id=42)

        HistoryFetcher(client).should_chunk(START, START + timedelta(hours=2), child)

        client.get_device_locations.assert_called_once_with(account=child)


class TestFetch:
    """Test HistoryFetcher.fetch()."""

    def test_small_fleet_single_request(self) -> None:
        client: MagicMock = _mock_client(3)
        end: datetime = START + timedelta(hours=6)

        rows: list[Location] = HistoryFetcher(client).fetch(START, end, interval=5)

        assert len(rows) == 1

        client.get_history_from_to.assert_called_once_with(
            START, end, device_ids=None, interval=5, account=None
        )

    def test_large_fleet_chunks_in_order(self) -> None:
        """Should request each window in order and concatenate the results."""

        client: MagicMock = _mock_client(51)
        end: datetime = START + timedelta(seconds=3601)

        rows: list[Location] = HistoryFetcher(client).fetch(START, end, device_ids=[1])

        calls: list[Any] = client.get_history_from_to.call_args_list

        assert [call.args for call in calls] == [
            (START, START + timedelta(minutes=59, seconds=59)),
            (START + timedelta(hours=1), end),
        ]

        assert all(call.kwargs['device_ids'] == [1] for call in calls)

        assert [row.last_updated for row in rows] == [
            START,
            START + timedelta(hours=1),
        ]

    def test_first_failure_stops_remaining_chunks(self) -> None:
        client: MagicMock = _mock_client(100)
        failure = RestError(
            '/v1/ImmediateReport/historyfromto returned 500', ErrorKind.HTTP_STATUS
        )
        client.get_history_from_to.side_effect = [[], failure, []]

        with pytest.raises(RestError):
            HistoryFetcher(client).fetch(START, START + timedelta(hours=3))

        assert client.get_history_from_to.call_count == 2  # noqa: PLR2004

    def test_short_range_direct_with_small_chunks(self) -> None:
        """Should send one request for an hour or less even with 30 minute chunks."""

        client: MagicMock = _mock_client(100)
        end: datetime = START + timedelta(minutes=45)

        HistoryFetcher(client, chunk_size=timedelta(minutes=30)).fetch(START, end)

        client.get_device_locations.assert_not_called()

        client.get_history_from_to.assert_called_once_with(
            START, end, device_ids=None, interval=None, account=None
        )

    def test_start_after_end(self) -> None:
        client: MagicMock = _mock_client(100)

        with pytest.raises(ValueError, match='must not be after end'):
            HistoryFetcher(client).fetch(START, START - timedelta(seconds=1))

        client.get_device_locations.assert_not_called()

    def test_from_config(self) -> None:
        client: MagicMock = _mock_client(11)
        config = HistoryConfig(large_fleet_threshold=10, chunk_minutes=30)

        fetcher = HistoryFetcher.from_config(client, config)

        windows = fetcher.plan_windows(START, START + timedelta(hours=1, seconds=1))

        assert len(windows) == 3  # noqa: PLR2004

        over_an_hour: datetime = START + timedelta(hours=1, seconds=1)

        assert fetcher.should_chunk(START, over_an_hour) is True
