# usft_rest_client/polling.py
"""
Background loop that snapshots current device locations on a schedule.

Each cycle:
    1. Ask the configuration provider for the current snapshot (once).
    2. Without credentials, wait ``polling.idle_check_seconds`` and recheck.
    3. Otherwise fetch every device's latest location and hand the list to
       the sink (by default the CSV writer configured by ``output``).
    4. Wait for the remainder of ``polling.interval_seconds``.

A failed configuration read, fetch or write is logged and the next cycle runs on schedule; the
loop only ends through stop() or pause().

Threading Model:
----------------
One daemon worker thread per running loop. Waits use a threading.Event, so
stop() and pause() wake the worker immediately and return once it has
exited. The HTTP client is created and used only by the worker, and is
rebuilt when the api section of the configuration changes.
"""

import logging
import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Final

from usft_rest_client.api import UsftClient
from usft_rest_client.client import RestError
from usft_rest_client.common.csv_output import LocationCsvWriter
from usft_rest_client.config import ApiConfig, UsftConfig
from usft_rest_client.models import Location

__all__: list[str] = [
    'LoopState',
    'PollingLoop',
    'write_locations_csv',
]

logger: logging.Logger = logging.getLogger(__name__)

WORKER_THREAD_NAME: Final[str] = 'usft-polling-loop'

type ConfigProvider = Callable[[], UsftConfig]
type LocationSink = Callable[[Sequence[Location], UsftConfig], None]
type ClientFactory = Callable[[ApiConfig], UsftClient]


class LoopState(str, Enum):
    """Lifecycle state of a PollingLoop."""

    IDLE = 'idle'
    RUNNING = 'running'
    PAUSED = 'paused'


def write_locations_csv(locations: Sequence[Location], config: UsftConfig) -> None:
    """Default sink: replace the configured CSV file with the snapshot."""
    LocationCsvWriter(config.output).write(locations)


class PollingLoop:
    """
    Periodically fetches device locations and passes them to a sink.

    Example:
        >>> loop = PollingLoop(ReloadableConfig('config/usft_config.yaml'))
        >>> loop.start()
        True
        >>> loop.stop()
    """

    def __init__(
        self,
        config_provider: ConfigProvider,
        sink: LocationSink | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        """
        Args:
            config_provider: Returns the current configuration; called once
                per cycle.
            sink: Receives each successful snapshot. Defaults to
                write_locations_csv.
            client_factory: Builds a client from the api section. Defaults
                to UsftClient.from_config.
        """
        self._config_provider: ConfigProvider = config_provider
        self._sink: LocationSink = sink or write_locations_csv
        self._client_factory: ClientFactory = client_factory or UsftClient.from_config

        self._lock: threading.Lock = threading.Lock()
        self._stop_event: threading.Event = threading.Event()
        self._worker: threading.Thread | None = None
        self._state: LoopState = LoopState.IDLE

        self._client: UsftClient | None = None
        self._client_settings: ApiConfig | None = None
        self._completed_cycles: int = 0
        self._last_config: UsftConfig = UsftConfig()

    @property
    def state(self) -> LoopState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """True while a worker thread is alive."""
        return self._worker is not None and self._worker.is_alive()

    @property
    def completed_cycles(self) -> int:
        """Number of cycles that fetched and delivered a snapshot."""
        return self._completed_cycles

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """
        Start the worker thread.

        Idempotent: when a worker is already running nothing happens.

        Returns:
            True if a new worker was started.
        """
        with self._lock:
            if self.is_running:
                logger.debug('Polling loop already running')
                return False

            self._stop_event.clear()
            self._worker = threading.Thread(
                target=self._run,
                name=WORKER_THREAD_NAME,
                daemon=True,
            )
            self._worker.start()
            self._state = LoopState.RUNNING
            logger.info('Polling loop started')
            return True

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop the worker and wait for it to exit.

        Args:
            timeout: Maximum seconds to wait for the worker. None waits
                until the in-flight request (if any) completes.
        """
        with self._lock:
            self._halt_worker(timeout)
            self._state = LoopState.IDLE
            self._close_client()
            logger.info('Polling loop stopped')

    def pause(self, timeout: float | None = None) -> None:
        """Stop the worker but remember that the loop was paused."""
        with self._lock:
            self._halt_worker(timeout)
            self._state = LoopState.PAUSED
            logger.info('Polling loop paused')

    def resume(self) -> bool:
        """Restart the worker after pause(). Same as start()."""
        return self.start()

    def _halt_worker(self, timeout: float | None) -> None:
        worker: threading.Thread | None = self._worker
        if worker is None:
            return

        self._stop_event.set()
        if worker is not threading.current_thread():
            worker.join(timeout)
            if worker.is_alive():
                logger.warning(
                    'Polling worker did not exit within %s seconds', timeout
                )
        self._worker = None

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    def _run(self) -> None:
        while not self._stop_event.is_set():
            wait_seconds: float = self.run_once()
            self._stop_event.wait(wait_seconds)

    def run_once(self) -> float:
        """
        Run one poll cycle in the calling thread.

        Returns:
            Seconds to wait before the next cycle.
        """
        try:
            config: UsftConfig = self._config_provider()
        except Exception:
            logger.exception('Could not read configuration')
            return self._last_config.polling.idle_check_seconds
        self._last_config = config

        if not config.is_configured:
            logger.debug('Waiting for username and api_key to be configured')
            return config.polling.idle_check_seconds

        cycle_started: float = time.monotonic()

        try:
            client: UsftClient = self._client_for(config.api)
            locations: list[Location] = client.get_device_locations()
            self._sink(locations, config)
        except RestError as error:
            logger.error('Location fetch failed (%s): %s', error.kind.value, error)
        except Exception:
            # Any other failure (e.g. the sink's file write) must not end the loop.
            logger.exception('Polling cycle failed')
        else:
            self._completed_cycles += 1
            logger.debug('Delivered %d locations', len(locations))

        elapsed: float = time.monotonic() - cycle_started
        return max(config.polling.interval_seconds - elapsed, 0.0)

    def _client_for(self, api_config: ApiConfig) -> UsftClient:
        """Reuse the client unless the api settings changed."""
        if self._client is None or api_config != self._client_settings:
            if self._client is not None:
                logger.info('API settings changed; rebuilding client')
            self._close_client()
            self._client = self._client_factory(api_config)
            self._client_settings = api_config
        return self._client

    def _close_client(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._client_settings = None
