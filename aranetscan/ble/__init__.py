"""BLE discovery and GATT access for Aranet4 devices."""

from .adapter import BleAdapter
from .decoder import decode_reading
from .info import read_device_info
from .scanner import ScanCoordinator
from .session import DeviceSession

__all__ = ["BleAdapter", "DeviceSession", "ScanCoordinator", "decode_reading", "read_device_info"]
