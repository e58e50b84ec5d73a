"""Handle to the local Bluetooth radio for one discovery pass."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from bleak import BleakScanner as BleakScannerLib
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from ..errors import AdapterUnavailable, ScanStartFailure
from ..models import Peripheral

logger = logging.getLogger(__name__)


class BleAdapter:
    """Owns a Bleak scanner and turns its callbacks into a queue of events.

    Opened at the start of a discovery pass and closed at the end of it.
    Nothing outside the pass should hold on to it.
    """

    # Timeout for stop() operation - don't let it hang forever
    STOP_TIMEOUT_SECONDS = 10

    # Advertisements kept while a session blocks the scan loop; oldest dropped first
    MAX_PENDING_EVENTS = 256

    def __init__(
        self,
        name: Optional[str] = None,
        scanner_factory: Callable[..., Any] = BleakScannerLib,
    ) -> None:
        self._name = name
        self._scanner_factory = scanner_factory
        self._scanner: Optional[Any] = None
        self._events: Optional[asyncio.Queue[Peripheral]] = None
        self._scanning = False

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def is_open(self) -> bool:
        return self._scanner is not None

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    def _detection_callback(
        self,
        device: BLEDevice,
        advertisement_data: AdvertisementData,
    ) -> None:
        """Queue an advertisement for the scan loop."""
        if self._events is None:
            return

        peripheral = Peripheral(
            address=device.address,
            name=advertisement_data.local_name or device.name,
            service_uuids=list(advertisement_data.service_uuids or []),
            device=device,
        )
        if self._events.full():
            self._events.get_nowait()
        self._events.put_nowait(peripheral)

    async def open(self, service_uuids: list[str]) -> None:
        """Acquire the radio with a scan filter for the given services."""
        if self.is_open:
            raise RuntimeError("Adapter already open")

        kwargs: dict[str, Any] = {}
        if self._name:
            kwargs["adapter"] = self._name

        self._events = asyncio.Queue(maxsize=self.MAX_PENDING_EVENTS)
        try:
            self._scanner = self._scanner_factory(
                detection_callback=self._detection_callback,
                service_uuids=service_uuids,
                **kwargs,
            )
        except (BleakError, OSError) as e:
            self._events = None
            raise AdapterUnavailable(f"Bluetooth adapter unavailable: {e}") from e

        logger.debug("Adapter %s opened", self._name or "default")

    async def start_scan(self) -> None:
        """Start scanning."""
        if self._scanner is None:
            raise RuntimeError("Adapter not open")

        try:
            await self._scanner.start()
        except FileNotFoundError as e:
            # No BlueZ / D-Bus socket on this host
            raise AdapterUnavailable(f"Bluetooth adapter unavailable: {e}") from e
        except (BleakError, OSError) as e:
            raise ScanStartFailure(f"Failed to start scan: {e}") from e

        self._scanning = True
        logger.debug("Scan started")

    async def next_event(self) -> Peripheral:
        """Wait for the next advertisement."""
        if self._events is None:
            raise RuntimeError("Adapter not open")
        return await self._events.get()

    async def stop_scan(self) -> None:
        """Stop scanning with timeout protection. Never raises."""
        if self._scanner is None or not self._scanning:
            return

        self._scanning = False
        try:
            await asyncio.wait_for(
                self._scanner.stop(),
                timeout=self.STOP_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning("Scanner stop() timed out after %ds", self.STOP_TIMEOUT_SECONDS)
        except Exception as e:
            logger.debug("Error stopping scanner: %s", e)
        else:
            logger.debug("Scan stopped")

    async def close(self) -> None:
        """Release the radio."""
        await self.stop_scan()
        self._scanner = None
        self._events = None
