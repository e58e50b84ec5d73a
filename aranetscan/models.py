"""Data models for aranetscan."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

DEFAULT_TIMEOUT_SECONDS = 10.0


class SessionState(Enum):
    """Lifecycle of a connection to one peripheral."""

    DISCOVERED = "discovered"
    CONNECTED = "connected"
    SERVICES_DISCOVERED = "services_discovered"
    CLOSED = "closed"


class ErrorPolicy(Enum):
    """What the scanner does when a single device session fails."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass
class Peripheral:
    """A device seen in an advertisement, not yet connected.

    ``device`` is the backend object handed to the BLE client on connect.
    """

    address: str
    name: Optional[str] = None
    service_uuids: list[str] = field(default_factory=list)
    device: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.address = self.address.upper()
        self.service_uuids = [str(u).lower() for u in self.service_uuids]

    def advertises(self, service_uuid: str) -> bool:
        """Check if the advertisement listed the given service."""
        return service_uuid.lower() in self.service_uuids


@dataclass
class SensorReading:
    """Current measurements read from an Aranet4."""

    co2: int
    temperature: float
    pressure: float
    humidity: float
    battery: int


@dataclass
class DeviceInfo:
    """Device Information Service strings. Unset fields were absent or unreadable."""

    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_revision: Optional[str] = None
    hardware_revision: Optional[str] = None
    software_revision: Optional[str] = None
    manufacturer_name: Optional[str] = None


@dataclass
class DeviceRecord:
    """Everything read from one device during a discovery pass."""

    name: str
    address: str
    data: SensorReading
    info: DeviceInfo = field(default_factory=DeviceInfo)

    def __post_init__(self) -> None:
        self.address = self.address.upper()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ScanConfig:
    """Settings for one discovery pass."""

    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_devices: Optional[int] = None
    adapter: Optional[str] = None
    on_error: ErrorPolicy = ErrorPolicy.ABORT
    workers: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.on_error, str):
            self.on_error = ErrorPolicy(self.on_error)
