# usft_rest_client/common/csv_output.py
"""
CSV output for location snapshots and history downloads.

File Format:
------------
One header row with the enabled columns, in this fixed order:

    Serial,Name,Latitude,Longitude,Heading,Velocity,Satellites,Ignition,
    LastMoved,LastUpdated,OutputFlags

- Name is always wrapped in double quotes; embedded quotes become ``\\"``.
- Latitude and Longitude have exactly six decimals.
- Timestamps use the US general form ``10/20/2026 1:05:09 PM`` unless a
  strftime pattern is configured.
- LastMoved is an empty cell when the device never reported movement.
- UTF-8, ``\\n`` line endings.

Writes are atomic (temp file in the target directory, then rename), so a
reader polling the file never sees a half-written snapshot.

Thread Safety:
--------------
A writer holds no mutable state; concurrent writes to the same path are
last-writer-wins.
"""

import logging
import tempfile
from collections.abc import Callable, Sequence
from contextlib import suppress
from datetime import datetime
from pathlib import Path
from typing import Final

import pandas as pd

from usft_rest_client.config import OutputConfig
from usft_rest_client.models.records import Location

__all__: list[str] = [
    'CSV_COLUMNS',
    'LocationCsvWriter',
    'format_us_general_datetime',
    'locations_to_dataframe',
]

logger: logging.Logger = logging.getLogger(__name__)

type CellFormatter = Callable[[Location, str | None], str]


def format_us_general_datetime(moment: datetime) -> str:
    """
    Render a timestamp as ``M/D/YYYY h:mm:ss AM``.

    The AM/PM marker is fixed English and independent of the process locale.
    """
    hour: int = moment.hour % 12 or 12
    meridiem: str = 'AM' if moment.hour < 12 else 'PM'  # noqa: PLR2004
    return (
        f'{moment.month}/{moment.day}/{moment.year} '
        f'{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}'
    )


def _format_timestamp(moment: datetime | None, pattern: str | None) -> str:
    if moment is None:
        return ''
    # Offset-bearing values are written in local time; naive values as sent.
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    if pattern is None:
        return format_us_general_datetime(moment)
    return moment.strftime(pattern)


def _quote_name(name: str | None) -> str:
    escaped: str = (name or '').replace('"', '\\"')
    return f'"{escaped}"'


# (toggle attribute on ColumnSelection, header, formatter)
CSV_COLUMNS: Final[tuple[tuple[str, str, CellFormatter], ...]] = (
    ('serial', 'Serial', lambda loc, _fmt: str(loc.device_id)),
    ('name', 'Name', lambda loc, _fmt: _quote_name(loc.device_name)),
    ('latitude', 'Latitude', lambda loc, _fmt: f'{loc.latitude:.6f}'),
    ('longitude', 'Longitude', lambda loc, _fmt: f'{loc.longitude:.6f}'),
    ('heading', 'Heading', lambda loc, _fmt: str(loc.heading)),
    ('velocity', 'Velocity', lambda loc, _fmt: str(loc.velocity)),
    ('satellites', 'Satellites', lambda loc, _fmt: str(loc.satellites)),
    ('ignition', 'Ignition', lambda loc, _fmt: str(loc.ignition)),
    ('last_moved', 'LastMoved', lambda loc, fmt: _format_timestamp(loc.last_moved, fmt)),
    (
        'last_updated',
        'LastUpdated',
        lambda loc, fmt: _format_timestamp(loc.last_updated, fmt),
    ),
    ('output_flags', 'OutputFlags', lambda loc, _fmt: str(loc.output_flags)),
)


# =============================================================================
# DataFrame conversion
# =============================================================================

_INTEGER_FIELDS: Final[tuple[str, ...]] = (
    'account_id',
    'device_id',
    'heading',
    'velocity',
    'satellites',
    'ignition',
    'output_flags',
    'power',
)
_FLOAT_FIELDS: Final[tuple[str, ...]] = ('latitude', 'longitude')
_DATETIME_FIELDS: Final[tuple[str, ...]] = ('last_moved', 'last_updated')


def locations_to_dataframe(locations: Sequence[Location]) -> pd.DataFrame:
    """
    Convert location records to a typed DataFrame, one row per record.

    Columns are the snake_case Location field names. Timestamps become
    tz-aware UTC (naive values are taken as UTC); a missing last_moved is NaT.

    Returns:
        DataFrame with int64, float64, string and datetime64[ns, UTC] columns.
        An empty input yields an empty frame with the same columns.
    """
    field_names: list[str] = list(Location.model_fields)
    frame: pd.DataFrame = pd.DataFrame(
        [location.model_dump() for location in locations],
        columns=field_names,
    )

    frame = frame.astype(
        {
            **dict.fromkeys(_INTEGER_FIELDS, 'int64'),
            **dict.fromkeys(_FLOAT_FIELDS, 'float64'),
            'device_name': 'string',
        }
    )
    for column in _DATETIME_FIELDS:
        frame[column] = pd.to_datetime(frame[column], utc=True)

    return frame


# =============================================================================
# Writer
# =============================================================================


class LocationCsvWriter:
    """
    Writes Location records to CSV according to an OutputConfig.

    The writer can be used directly as the polling loop sink:

        >>> writer = LocationCsvWriter(config.output)
        >>> writer.write(client.get_device_locations())
        PosixPath('locations.csv')
    """

    def __init__(self, output_config: OutputConfig) -> None:
        """
        Args:
            output_config: Target path, column toggles and timestamp format.

        Raises:
            ValueError: If every column is disabled.
        """
        self._output_config: OutputConfig = output_config
        self._columns: list[tuple[str, CellFormatter]] = [
            (header, formatter)
            for toggle, header, formatter in CSV_COLUMNS
            if getattr(output_config.columns, toggle)
        ]
        if not self._columns:
            raise ValueError('At least one output column must be enabled')

    @property
    def path(self) -> Path:
        """Default destination file."""
        return self._output_config.file_path

    @property
    def headers(self) -> list[str]:
        """Enabled column headers in output order."""
        return [header for header, _ in self._columns]

    def to_frame(self, locations: Sequence[Location]) -> pd.DataFrame:
        """Build the formatted (all-string) DataFrame that gets written."""
        pattern: str | None = self._output_config.timestamp_format
        rows: list[dict[str, str]] = [
            {header: formatter(location, pattern) for header, formatter in self._columns}
            for location in locations
        ]
        return pd.DataFrame(rows, columns=self.headers, dtype=str)

    def render(self, locations: Sequence[Location]) -> str:
        """
        Render the full CSV text.

        Cells are joined verbatim: Name carries its own quoting, so the csv
        module's quoting rules are not applied on top.
        """
        frame: pd.DataFrame = self.to_frame(locations)
        lines: list[str] = [','.join(frame.columns)]
        if not frame.empty:
            lines.extend(frame.apply(','.join, axis=1).tolist())
        return '\n'.join(lines) + '\n'

    def write(self, locations: Sequence[Location], path: Path | None = None) -> Path:
        """
        Replace the target file with a CSV of the given locations.

        Args:
            locations: Records to write. An empty sequence writes the header.
            path: Destination; defaults to the configured file_path.

        Returns:
            The path written.

        Raises:
            OSError: File system errors (permissions, disk full, etc).
        """
        file_path: Path = path if path is not None else self.path
        content: str = self.render(locations)

        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory so the rename stays on one filesystem.
        try:
            with tempfile.NamedTemporaryFile(
                mode='w',
                encoding='utf-8',
                newline='',
                suffix='.csv.tmp',
                dir=file_path.parent,
                delete=False,
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(content)

            temp_path.replace(file_path)

        except OSError as write_error:
            logger.exception(
                'Failed to write %d locations to %r: %s',
                len(locations),
                file_path,
                write_error,
            )
            if 'temp_path' in locals() and temp_path.exists():  # pyright: ignore[reportPossiblyUnboundVariable]
                with suppress(OSError):
                    temp_path.unlink()  # pyright: ignore[reportPossiblyUnboundVariable]
            raise

        logger.info('Wrote %d locations to %s', len(locations), file_path)
        return file_path
