# usft_rest_client/service.py
"""
Foreground service wrapper around the polling loop.

PollingService owns the live configuration and the PollingLoop, records its
pid in ``service.pid_file`` and translates POSIX signals into control
operations:

    SIGTERM, SIGINT  -> stop and exit run_forever()
    SIGHUP           -> reload configuration and logging settings

Another process (e.g. ``usft-rest-client refresh``) asks a running service to
reload by calling request_refresh(), which sends SIGHUP to the recorded pid.
"""

import logging
import os
import signal
import threading
from pathlib import Path
from types import FrameType
from typing import Final

from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from usft_rest_client.common.logger import setup_logger
from usft_rest_client.config import DEFAULT_CONFIG_PATH, ReloadableConfig, UsftConfig
from usft_rest_client.polling import LocationSink, LoopState, PollingLoop

__all__: list[str] = [
    'PollingService',
    'ServiceNotRunningError',
    'request_refresh',
]

logger: logging.Logger = logging.getLogger(__name__)

REFRESH_ATTEMPTS: Final[int] = 5


# =============================================================================
# Exceptions
# =============================================================================


class ServiceNotRunningError(Exception):
    """
    Raised when a control request finds no running service.

    Attributes:
        pid_file: The pid file that was consulted.
    """

    def __init__(self, pid_file: Path, message: str) -> None:
        self.pid_file: Path = pid_file
        super().__init__(message)


class _ServiceStarting(Exception):
    """The pid file does not exist yet; the service may still be starting."""


# =============================================================================
# Control Channel
# =============================================================================


def _read_pid(pid_file: Path) -> int:
    try:
        content: str = pid_file.read_text(encoding='utf-8').strip()
    except FileNotFoundError as error:
        raise _ServiceStarting(str(pid_file)) from error

    try:
        return int(content)
    except ValueError as error:
        raise ServiceNotRunningError(
            pid_file, f'Pid file {pid_file} does not contain a pid: {content!r}'
        ) from error


@retry(
    retry=retry_if_exception_type(_ServiceStarting),
    wait=wait_exponential(multiplier=0.5, max=8),
    stop=stop_after_attempt(REFRESH_ATTEMPTS),
)
def _signal_service(pid_file: Path) -> int:
    pid: int = _read_pid(pid_file)
    try:
        os.kill(pid, signal.SIGHUP)
    except ProcessLookupError as error:
        raise ServiceNotRunningError(
            pid_file, f'No process with pid {pid} (stale pid file {pid_file})'
        ) from error
    return pid


def request_refresh(pid_file: Path | str) -> int:
    """
    Ask a running PollingService to reload its configuration.

    While the pid file is missing (service still starting) the request is
    retried with exponential backoff, at most five attempts.

    Args:
        pid_file: Pid file written by the service.

    Returns:
        The pid that was signalled.

    Raises:
        ServiceNotRunningError: If no running service could be reached.
    """
    pid_file = Path(pid_file)
    try:
        pid: int = _signal_service(pid_file)
    except RetryError as error:
        raise ServiceNotRunningError(
            pid_file,
            f'Service did not start: no pid file at {pid_file} '
            f'after {REFRESH_ATTEMPTS} attempts',
        ) from error

    logger.info('Requested configuration refresh from pid %d', pid)
    return pid


# =============================================================================
# Service
# =============================================================================


class PollingService:
    """
    Runs the polling loop as a long-lived process.

    Example:
        >>> service = PollingService('config/usft_config.yaml')
        >>> service.run_forever()  # returns after SIGTERM or SIGINT
    """

    def __init__(
        self,
        config_path: Path | str = DEFAULT_CONFIG_PATH,
        sink: LocationSink | None = None,
    ) -> None:
        self._config: ReloadableConfig = ReloadableConfig(config_path)
        self._loop: PollingLoop = PollingLoop(self._config, sink=sink)
        self._shutdown: threading.Event = threading.Event()
        self._pid_file: Path | None = None

    @property
    def config(self) -> UsftConfig:
        """Current configuration snapshot."""
        return self._config()

    @property
    def state(self) -> LoopState:
        return self._loop.state

    @property
    def loop(self) -> PollingLoop:
        return self._loop

    def start(self) -> None:
        """Write the pid file and start polling."""
        self._write_pid_file(self.config.service.pid_file)
        self._loop.start()

    def stop(self) -> None:
        """Stop polling and remove the pid file."""
        self._loop.stop()
        self._remove_pid_file()

    def pause(self) -> None:
        self._loop.pause()

    def resume(self) -> None:
        self._loop.resume()

    def refresh_config(self) -> UsftConfig:
        """Reload the configuration file and reapply logging settings."""
        config: UsftConfig = self._config.refresh()
        setup_logger(config=config.logging)
        logger.info('Configuration refreshed from %s', self._config.config_path)
        return config

    def request_shutdown(self) -> None:
        """Make run_forever() return."""
        self._shutdown.set()

    def run_forever(self) -> None:
        """
        Start, then block until SIGTERM/SIGINT or request_shutdown().

        Must be called from the main thread (signal handlers).
        """
        self._install_signal_handlers()
        self.start()
        logger.info('Service running (pid %d)', os.getpid())
        try:
            self._shutdown.wait()
        finally:
            self.stop()
            logger.info('Service stopped')

    def _install_signal_handlers(self) -> None:
        def handle_stop(signum: int, _frame: FrameType | None) -> None:
            logger.info('Received %s; stopping', signal.Signals(signum).name)
            self.request_shutdown()

        def handle_refresh(_signum: int, _frame: FrameType | None) -> None:
            self.refresh_config()

        signal.signal(signal.SIGTERM, handle_stop)
        signal.signal(signal.SIGINT, handle_stop)
        if hasattr(signal, 'SIGHUP'):
            signal.signal(signal.SIGHUP, handle_refresh)

    def _write_pid_file(self, pid_file: Path) -> None:
        pid_file.parent.mkdir(parents=True, exist_ok=True)
        pid_file.write_text(f'{os.getpid()}\n', encoding='utf-8')
        self._pid_file = pid_file
        logger.debug('Wrote pid file %s', pid_file)

    def _remove_pid_file(self) -> None:
        if self._pid_file is None:
            return
        self._pid_file.unlink(missing_ok=True)
        self._pid_file = None
