# usft_rest_client/models/records.py
"""
Pydantic models for USFT API records.

The API speaks PascalCase JSON (``{"DeviceId": 12, "LastMoved": null}``).
Models expose snake_case attributes and map to the wire names through an
alias generator; the handful of irregular wire names are aliased explicitly.

Design Notes:
    - Records are frozen snapshots. Create/update calls return the canonical
      record as stored by the server rather than mutating the argument.
    - Identity fields default to 0: the server assigns them on create.
    - Unknown fields are ignored so server-side additions do not break parsing.
    - Optional timestamps stay None when absent; they are never defaulted.
"""

# pyright: reportUnknownVariableType=false
import logging
from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

__all__: list[str] = [
    'Account',
    'Address',
    'AddressFence',
    'AddressGroup',
    'Alert',
    'AlertLog',
    'Device',
    'DeviceLocation',
    'DeviceMessage',
    'Dispatch',
    'FenceType',
    'FenceUnit',
    'Location',
    'LoginToken',
    'RecordBase',
    'ReportRequest',
    'ReportStatus',
    'ReportType',
    'ServiceCall',
    'Vehicle',
]

logger: logging.Logger = logging.getLogger(__name__)


# =============================================================================
# Enumerations (serialized as integers on the wire)
# =============================================================================


class FenceType(IntEnum):
    """Shape an Address Fence redraws itself as when its Address moves."""

    UNKNOWN = 0
    CIRCLE = 1
    SQUARE = 2
    RECTANGLE = 3


class FenceUnit(IntEnum):
    """Units for Address Fence dimensions."""

    UNKNOWN = 0
    FEET = 1
    YARDS = 2
    MILES = 3
    METERS = 4
    KILOMETERS = 5


class ReportType(IntEnum):
    """Long-running report kinds accepted by /ReportRequest."""

    AGGRESSIVE_DRIVING = 1
    DEVICE_MILEAGE_BY_STATE = 2
    DEVICE_MILEAGE = 3
    DEVICE_OPERATING = 4
    EXCESSIVE_IDLING = 5
    MASTER_LISTING = 6
    PTO_SENSOR = 7
    SPEED_ALERT = 8
    SPEEDING = 9
    STANDARD = 10
    START_STOP = 11
    POLYGON_ZONE_ACTIVITY = 12
    TRIPS_DETAIL = 13
    HISTORY_24 = 14
    HISTORY_FROM_TO = 15


class ReportStatus(IntEnum):
    """Processing state of a ReportRequest."""

    RECEIVED = 0
    PROCESSING = 1
    PROCESSED = 2
    ERROR = 3


# =============================================================================
# Base Configuration
# =============================================================================


class RecordBase(BaseModel):
    """
    Base class for all USFT records.

    Configuration:
        - alias_generator=to_pascal: snake_case attributes, PascalCase JSON.
        - populate_by_name=True: construct by attribute name or wire name.
        - frozen=True: records are immutable snapshots.
        - extra='ignore': tolerate fields added by the server.
    """

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
        extra='ignore',
    )


# =============================================================================
# Accounts
# =============================================================================


class Account(RecordBase):
    """
    A USFT account.

    Passing an Account with a nonzero account_id to any client method runs
    that call on behalf of the child account (impersonation).
    """

    account_id: int = 0
    viewable_account_ids: list[int] = Field(default_factory=list)
    login: str | None = None
    name: str | None = None
    email: str | None = None


class LoginToken(RecordBase):
    """Temporary token that lets a user open the web app without logging in."""

    account_id: int = 0
    token: str
    token_expiration: datetime
    link: str | None = None


# =============================================================================
# Devices and Locations
# =============================================================================


class Device(RecordBase):
    """A GPS tracking device registered to an account."""

    account_id: int = 0
    device_id: int = 0
    device_name: str | None = None
    flag_color: str | None = None
    text_color: str | None = None
    activation_date: datetime | None = None
    icon_path: str | None = None


class Vehicle(RecordBase):
    """Vehicle details attached to a device."""

    device_id: int = 0
    vin: str | None = Field(default=None, alias='VIN')
    fuel_card_number: str | None = None
    miles: int = 0
    hours: int = 0


class Location(RecordBase):
    """
    A position report from a device.

    Attributes:
        account_id: Owning account.
        device_id: Reporting device (the "Serial" column in CSV output).
        device_name: Display name of the device.
        latitude: Decimal degrees.
        longitude: Decimal degrees.
        heading: Compass heading in degrees.
        velocity: Speed reported by the device.
        satellites: Number of satellites in the fix.
        ignition: Ignition state flag.
        last_moved: Last time the device moved. Absent for devices that have
            never reported movement; never defaulted.
        last_updated: Time of this report. Always present.
        output_flags: Device output bit flags.
        power: Power level reported by the device.
    """

    account_id: int = 0
    device_id: int
    device_name: str | None = None
    latitude: float
    longitude: float
    heading: int = 0
    velocity: int = 0
    satellites: int = 0
    ignition: int = 0
    last_moved: datetime | None = None
    last_updated: datetime
    output_flags: int = 0
    power: int = 0


# Newer API builds call the same record DeviceLocation.
DeviceLocation = Location


# =============================================================================
# Addresses and Fences
# =============================================================================


class Address(RecordBase):
    """A named point of interest in an account."""

    account_id: int = 0
    address_id: int = 0
    name: str | None = None
    address_block: str | None = None
    latitude: float = 0.0
    longitude: float = 0.0
    image: str | None = None
    address_group_ids: list[int] = Field(default_factory=list)


class AddressGroup(RecordBase):
    """A named collection of Addresses."""

    account_id: int = 0
    address_group_id: int = 0
    name: str | None = None


class AddressFence(RecordBase):
    """
    An Address Fence: a geofence Alert that follows its Address.

    When creating, address_id must reference an existing Address and
    alert_id must be 0; the server creates the Alert.
    """

    address_fence_id: int = 0
    account_id: int = 0
    address_id: int = 0
    alert_id: int = 0
    fence_type: FenceType | None = None
    fence_dims: str | None = None
    fence_units: FenceUnit | None = None


# =============================================================================
# Alerts
# =============================================================================


class Alert(RecordBase):
    """An alert rule configured for an account."""

    account_id: int = 0
    alert_id: int = 0
    alert_name: str | None = None
    alert_type: str | None = None
    description: str | None = None
    device_ids: list[int] = Field(default_factory=list)


class AlertLog(RecordBase):
    """A single triggered alert event."""

    can_enter_exit: bool = False
    exiting: bool | None = None
    latitude: float | None = None
    longitude: float | None = None
    device_id: int = 0
    alert_id: int = 0
    alert_name: str | None = None
    description: str | None = None
    alert_type: str | None = None
    # The wire name is misspelled by the API.
    occurred_on: datetime = Field(alias='OcurredOn')


# =============================================================================
# Messaging and Dispatch
# =============================================================================


class DeviceMessage(RecordBase):
    """A text message sent to, or received from, a device."""

    account_id: int = 0
    device_message_id: int = 0
    device_id: int = 0
    message_type: int = 0
    message_status: int = 0
    message: str | None = None
    created: datetime | None = None


class Dispatch(RecordBase):
    """A dispatch of a device to an address."""

    account_id: int = 0
    dispatch_id: int = 0
    device_id: int = 0
    address_id: int = 0
    message: str | None = None
    dispatch_time: datetime | None = None


class ServiceCall(RecordBase):
    """A work order / service call tracked in an account."""

    account_id: int = 0
    service_call_id: int = 0
    work_order: str | None = None
    description: str | None = None
    dispatch_date: datetime | None = None
    request_date: datetime | None = None
    estimated_start_date: datetime | None = None
    customer_name: str | None = None
    caller: str | None = None
    equipment_id: str | None = None
    item: str | None = None
    territory_desc: str | None = None
    technician: str | None = None
    bill_code: str | None = None
    call_type: str | None = None
    priority: str | None = None
    status: str | None = None
    comment: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    equipment_remarks: str | None = None
    contact: str | None = None
    contact_phone: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    flag_color: str | None = None
    text_color: str | None = None
    marker_name: str | None = None


# =============================================================================
# Reports
# =============================================================================


class ReportRequest(RecordBase):
    """A request for a long-running report, processed asynchronously."""

    account_id: int = 0
    report_request_id: int = 0
    report_type: ReportType
    email: str | None = None
    start_date: datetime
    end_date: datetime
    time_zone_id: int = 0
    seconds: int = 0
    speed: int = 0
    device_ids: list[int] = Field(default_factory=list)
    time_received: datetime | None = None
    status: ReportStatus = ReportStatus.RECEIVED
    time_processed: datetime | None = None
    zone_id: int = 0
    interval: int = 0
