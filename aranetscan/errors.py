"""Exceptions raised by aranetscan."""

from __future__ import annotations

from typing import Optional


class AranetScanError(Exception):
    """Base exception for aranetscan."""

    pass


class ConfigError(AranetScanError):
    """Invalid configuration value."""

    pass


class ScanError(AranetScanError):
    """Adapter level failure. Always ends the discovery pass."""

    pass


class AdapterUnavailable(ScanError):
    """No usable Bluetooth radio."""

    pass


class ScanStartFailure(ScanError):
    """The radio refused to start scanning."""

    pass


class NoDeviceFound(ScanError):
    """The pass finished without a single device when one was required."""

    pass


class DeviceError(AranetScanError):
    """Failure while talking to one device."""

    def __init__(self, address: Optional[str], message: str) -> None:
        super().__init__(f"{address}: {message}" if address else message)
        self.address = address
        self.message = message


class ConnectionFailure(DeviceError):
    """Could not connect to the device."""

    pass


class ServiceDiscoveryFailure(DeviceError):
    """GATT services could not be resolved."""

    pass


class MissingNameError(DeviceError):
    """The device did not advertise a name."""

    pass


class MalformedPayloadError(DeviceError):
    """Sensor characteristic missing, unreadable or too short."""

    pass


class SessionStateError(DeviceError):
    """Operation attempted in the wrong session state."""

    pass
