"""
Helpers shared by the usft_rest_client test modules.
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx

type Handler = Callable[[httpx.Request], httpx.Response]

FIXED_NOW: datetime = datetime(2026, 10, 20, 12, 0, 0, tzinfo=UTC)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    """Build an httpx.Response with a JSON body."""
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode('utf-8'),
        headers={'Content-Type': 'application/json'},
    )


def location_payload(device_id: int, **overrides: Any) -> dict[str, Any]:
    """Build one Location record as the API sends it."""
    payload: dict[str, Any] = {
        'AccountId': 7,
        'DeviceId': device_id,
        'DeviceName': f'Truck {device_id}',
        'Latitude': 40.7128,
        'Longitude': -74.006,
        'Heading': 90,
        'Velocity': 55,
        'Satellites': 9,
        'Ignition': 1,
        'LastMoved': '2026-10-20T11:58:00',
        'LastUpdated': '2026-10-20T12:00:00',
        'OutputFlags': 0,
        'Power': 12,
    }
    payload.update(overrides)
    return payload


class RecordingTransport(httpx.MockTransport):
    """MockTransport that also keeps every request it receives."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)
