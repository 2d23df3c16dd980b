# usft_rest_client/cli.py
"""
Command line entry point (``usft-rest-client``).

Commands:
    run              Run the location poller until SIGTERM/SIGINT.
    refresh          Tell a running poller to reload its configuration.
    history          Download location history for a time range to CSV.
    test-connection  Verify credentials against /Test.
    server-time      Print the server clock (unauthenticated).
    init-config      Write a starter configuration file.

Every command returns exit status 0 on success and 1 after logging an error.
"""

import argparse
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

import yaml

from usft_rest_client import __version__
from usft_rest_client.api import UsftClient
from usft_rest_client.client import RestError
from usft_rest_client.common.csv_output import LocationCsvWriter
from usft_rest_client.common.logger import setup_logger
from usft_rest_client.config import (
    DEFAULT_CONFIG_PATH,
    ReloadableConfig,
    UsftConfig,
    load_config,
    write_default_config,
)
from usft_rest_client.history import HistoryFetcher
from usft_rest_client.models import Location
from usft_rest_client.service import (
    PollingService,
    ServiceNotRunningError,
    request_refresh,
)

__all__: list[str] = ['build_parser', 'main']

logger: logging.Logger = logging.getLogger(__name__)

type CommandHandler = Callable[[argparse.Namespace], int]


# =============================================================================
# Commands
# =============================================================================


def _command_run(args: argparse.Namespace) -> int:
    # The file may not exist yet; the service waits for it.
    initial: UsftConfig = ReloadableConfig(args.config)()
    setup_logger(config=initial.logging)
    PollingService(args.config).run_forever()
    return 0


def _command_refresh(args: argparse.Namespace) -> int:
    pid_file: Path = args.pid_file or ReloadableConfig(args.config)().service.pid_file
    pid: int = request_refresh(pid_file)
    print(f'Refresh requested from pid {pid}')
    return 0


def _command_history(args: argparse.Namespace) -> int:
    config: UsftConfig = _load_logged_config(args.config)
    output_path: Path = args.output or config.history.output_path

    with UsftClient.from_config(config.api) as client:
        logger.info('Testing connection...')
        client.test_connection()

        fetcher: HistoryFetcher = HistoryFetcher.from_config(client, config.history)
        rows: list[Location] = fetcher.fetch(
            args.start,
            args.end,
            device_ids=args.device_ids,
            interval=args.interval if args.interval is not None else config.history.interval,
        )

    logger.info('Data retrieved and parsed. %d rows found.', len(rows))
    LocationCsvWriter(config.output).write(rows, path=output_path)
    print(f'Saved {len(rows)} rows to {output_path}')
    return 0


def _command_test_connection(args: argparse.Namespace) -> int:
    config: UsftConfig = _load_logged_config(args.config)
    with UsftClient.from_config(config.api) as client:
        client.test_connection()
    print('Connection OK')
    return 0


def _command_server_time(args: argparse.Namespace) -> int:
    config: UsftConfig = _load_logged_config(args.config)
    # /Time is unauthenticated, but the client still needs credentials to exist.
    with UsftClient.from_config(config.api) as client:
        print(client.server_time().isoformat())
    return 0


def _command_init_config(args: argparse.Namespace) -> int:
    path: Path = write_default_config(args.config, overwrite=args.force)
    print(f'Wrote {path}')
    return 0


def _local_timestamp(value: str) -> datetime:
    """Parse ISO-8601; naive values are local time. Always returns an aware value."""
    return datetime.fromisoformat(value).astimezone()


def _load_logged_config(config_path: Path) -> UsftConfig:
    config: UsftConfig = load_config(config_path)
    setup_logger(config=config.logging)
    return config


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog='usft-rest-client',
        description='USFT vehicle tracking API client, history downloader and poller',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument(
        '--config',
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f'Configuration file (default: {DEFAULT_CONFIG_PATH})',
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    run_parser = subparsers.add_parser('run', help='Run the location poller')
    run_parser.set_defaults(handler=_command_run)

    refresh_parser = subparsers.add_parser(
        'refresh', help='Reload configuration in a running poller'
    )
    refresh_parser.add_argument('--pid-file', type=Path, help='Override service.pid_file')
    refresh_parser.set_defaults(handler=_command_refresh)

    history_parser = subparsers.add_parser('history', help='Download history to CSV')
    history_parser.add_argument(
        '--start',
        type=_local_timestamp,
        required=True,
        help='Range start, ISO-8601 (naive values are local time)',
    )
    history_parser.add_argument(
        '--end',
        type=_local_timestamp,
        required=True,
        help='Range end, ISO-8601 (naive values are local time)',
    )
    history_parser.add_argument('--output', type=Path, help='Override history.output_path')
    history_parser.add_argument(
        '--device-id',
        dest='device_ids',
        type=int,
        action='append',
        help='Restrict to a device (repeatable)',
    )
    history_parser.add_argument('--interval', type=int, help='Reporting interval')
    history_parser.set_defaults(handler=_command_history)

    test_parser = subparsers.add_parser('test-connection', help='Verify credentials')
    test_parser.set_defaults(handler=_command_test_connection)

    time_parser = subparsers.add_parser('server-time', help='Print the server clock')
    time_parser.set_defaults(handler=_command_server_time)

    init_parser = subparsers.add_parser('init-config', help='Write a starter config')
    init_parser.add_argument('--force', action='store_true', help='Overwrite existing file')
    init_parser.set_defaults(handler=_command_init_config)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run one command and return its exit status."""
    args: argparse.Namespace = build_parser().parse_args(argv)
    handler: CommandHandler = args.handler
    setup_logger()

    try:
        return handler(args)
    except RestError as error:
        if error.is_authentication_failure:
            logger.error('Authentication failed; check username and api_key: %s', error)
        else:
            logger.error('%s', error)
    except (ServiceNotRunningError, ValueError, yaml.YAMLError, OSError) as error:
        logger.error('%s', error)
    return 1


if __name__ == '__main__':
    raise SystemExit(main())
