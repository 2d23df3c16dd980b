"""
Tests for usft_rest_client.cli module.

Tests argument parsing and each command's exit status, with the HTTP layer
replaced by a recording mock transport.
"""
# pyright: reportPrivateUsage=false

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from tenacity import wait_none

from tests.helpers import RecordingTransport, json_response, location_payload
from usft_rest_client.api import UsftClient
from usft_rest_client.cli import build_parser, main
from usft_rest_client.config import write_default_config
from usft_rest_client.service import _signal_service

type ClientFactory = Callable[..., tuple[UsftClient, RecordingTransport]]

CONFIGURED_YAML: str = """\
api:
  username: fleetuser
  api_key: secret-api-key
logging:
  console_level: WARNING
"""


@pytest.fixture
def config_path(temp_dir: Path) -> Path:
    path: Path = temp_dir / 'usft_config.yaml'
    path.write_text(CONFIGURED_YAML, encoding='utf-8')
    return path


class TestBuildParser:
    """Test build_parser()."""

    def test_history_arguments(self) -> None:
        args = build_parser().parse_args(
            [
                'history',
                '--start',
                '2026-10-20T00:00:00+00:00',
                '--end',
                '2026-10-20T06:00:00+00:00',
                '--device-id',
                '1',
                '--device-id',
                '2',
            ]
        )

        assert args.start == datetime(2026, 10, 20, 0, 0, 0, tzinfo=UTC)

        assert args.end == datetime(2026, 10, 20, 6, 0, 0, tzinfo=UTC)

        assert args.device_ids == [1, 2]

    def test_mixed_offsets_are_comparable(self) -> None:
        """Should make naive and offset timestamps both timezone-aware."""

        args = build_parser().parse_args(
            [
                'history',
                '--start',
                '2026-10-20T00:00:00',
                '--end',
                '2026-10-21T00:00:00+00:00',
            ]
        )

        assert args.start.tzinfo is not None

        assert args.end.tzinfo is not None

        assert args.start < args.end

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(['--version'])

        assert exc_info.value.code == 0

        assert 'usft-rest-client' in capsys.readouterr().out


class TestInitConfig:
    """Test the init-config command."""

    def test_writes_starter_file(self, temp_dir: Path) -> None:
        path: Path = temp_dir / 'config' / 'usft_config.yaml'

        assert main(['--config', str(path), 'init-config']) == 0

        assert path.exists()

    def test_existing_file_fails(self, config_path: Path) -> None:
        assert main(['--config', str(config_path), 'init-config']) == 1

        assert config_path.read_text(encoding='utf-8') == CONFIGURED_YAML

    def test_force_overwrites(self, config_path: Path) -> None:
        assert main(['--config', str(config_path), 'init-config', '--force']) == 0

        assert 'fleetuser' not in config_path.read_text(encoding='utf-8')


class TestApiCommands:
    """Test commands that talk to the API."""

    def test_test_connection(
        self,
        config_path: Path,
        make_client: ClientFactory,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        client, transport = make_client(lambda _req: httpx.Response(200, text='OK'))

        with patch('usft_rest_client.cli.UsftClient.from_config', return_value=client):
            assert main(['--config', str(config_path), 'test-connection']) == 0

        assert 'Connection OK' in capsys.readouterr().out

        assert transport.requests[0].url.path == '/v1/Test'

    def test_authentication_failure_exits_1(
        self, config_path: Path, make_client: ClientFactory
    ) -> None:
        client, _ = make_client(
            lambda _req: json_response({'Message': 'Invalid signature'}, 401)
        )

        with patch('usft_rest_client.cli.UsftClient.from_config', return_value=client):
            assert main(['--config', str(config_path), 'test-connection']) == 1

    def test_unconfigured_exits_1(self, temp_dir: Path) -> None:
        path: Path = write_default_config(temp_dir / 'usft_config.yaml')

        assert main(['--config', str(path), 'test-connection']) == 1

    def test_missing_config_exits_1(self, temp_dir: Path) -> None:
        assert main(['--config', str(temp_dir / 'missing.yaml'), 'server-time']) == 1

    def test_history_writes_csv(
        self,
        config_path: Path,
        temp_dir: Path,
        make_client: ClientFactory,
    ) -> None:
        """Should test the connection, fetch one range and write it to CSV."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == '/v1/Test':
                return httpx.Response(200, text='OK')
            return json_response([location_payload(1), location_payload(2)])

        client, transport = make_client(handler)
        output_path: Path = temp_dir / 'history.csv'

        with patch('usft_rest_client.cli.UsftClient.from_config', return_value=client):
            exit_code: int = main(
                [
                    '--config',
                    str(config_path),
                    'history',
                    '--start',
                    '2026-10-20T00:00:00+00:00',
                    '--end',
                    '2026-10-20T00:30:00+00:00',
                    '--output',
                    str(output_path),
                ]
            )

        assert exit_code == 0

        assert [request.url.path for request in transport.requests] == [
            '/v1/Test',
            '/v1/ImmediateReport/historyfromto',
        ]

        assert len(output_path.read_text(encoding='utf-8').splitlines()) == 3  # noqa: PLR2004


class TestRefresh:
    """Test the refresh command."""

    def test_no_service_exits_1(
        self, config_path: Path, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(_signal_service.retry, 'wait', wait_none())  # pyright: ignore[reportFunctionMemberAccess]

        exit_code: int = main(
            [
                '--config',
                str(config_path),
                'refresh',
                '--pid-file',
                str(temp_dir / 'missing.pid'),
            ]
        )

        assert exit_code == 1

    def test_signals_running_service(
        self, config_path: Path, temp_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        pid_file: Path = temp_dir / 'poller.pid'
        pid_file.write_text('4242\n', encoding='utf-8')

        with patch('usft_rest_client.service.os.kill') as mock_kill:
            exit_code: int = main(
                ['--config', str(config_path), 'refresh', '--pid-file', str(pid_file)]
            )

        assert exit_code == 0

        mock_kill.assert_called_once()

        assert 'pid 4242' in capsys.readouterr().out
