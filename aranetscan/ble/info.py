"""Device Information Service reader."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from bleak.exc import BleakError

from ..models import DeviceInfo

if TYPE_CHECKING:
    from .session import DeviceSession

logger = logging.getLogger(__name__)

# Errors a GATT operation can raise on any backend
BLE_ERRORS = (BleakError, asyncio.TimeoutError, OSError)

# Standard Device Information Service characteristics, keyed by DeviceInfo field
DEVICE_INFO_UUIDS = {
    "model_number": "00002a24-0000-1000-8000-00805f9b34fb",
    "serial_number": "00002a25-0000-1000-8000-00805f9b34fb",
    "firmware_revision": "00002a26-0000-1000-8000-00805f9b34fb",
    "hardware_revision": "00002a27-0000-1000-8000-00805f9b34fb",
    "software_revision": "00002a28-0000-1000-8000-00805f9b34fb",
    "manufacturer_name": "00002a29-0000-1000-8000-00805f9b34fb",
}


async def read_device_info(session: DeviceSession) -> DeviceInfo:
    """Read whichever identity strings the device exposes.

    Missing characteristics and failed reads leave the field unset.
    Invalid UTF-8 is replaced, never raised.
    """
    info = DeviceInfo()

    for field_name, uuid in DEVICE_INFO_UUIDS.items():
        if not session.has_characteristic(uuid):
            continue

        try:
            value = await session.read(uuid)
        except BLE_ERRORS as e:
            logger.debug("Could not read %s from %s: %s", field_name, session.address, e)
            continue

        setattr(info, field_name, value.decode("utf-8", errors="replace"))

    return info
