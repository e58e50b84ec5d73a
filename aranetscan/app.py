"""Runs one discovery pass from a ScanConfig."""

from __future__ import annotations

import logging
from typing import Optional

from .ble.adapter import BleAdapter
from .ble.scanner import ScanCoordinator
from .errors import NoDeviceFound
from .models import DeviceRecord, ScanConfig

logger = logging.getLogger(__name__)


async def run_scan(
    config: ScanConfig,
    require_device: bool = False,
    adapter: Optional[BleAdapter] = None,
) -> list[DeviceRecord]:
    """Discover and read devices as configured.

    Raises NoDeviceFound if require_device is set and nothing was found.
    """
    logger.debug("Scan configuration: %s", config)

    adapter = adapter or BleAdapter(config.adapter)
    coordinator = ScanCoordinator(
        adapter,
        on_error=config.on_error,
        workers=config.workers,
    )

    records = await coordinator.discover(config.max_devices, config.timeout)

    if require_device and not records:
        raise NoDeviceFound("could not find any Aranet4 device")

    return records
