"""GATT session with a single Aranet4."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from bleak import BleakClient

from ..errors import (
    ConnectionFailure,
    MalformedPayloadError,
    MissingNameError,
    ServiceDiscoveryFailure,
    SessionStateError,
)
from ..models import DeviceRecord, Peripheral, SensorReading, SessionState
from .decoder import ARANET4_READINGS_UUID, decode_reading
from .info import BLE_ERRORS, read_device_info

logger = logging.getLogger(__name__)


class DeviceSession:
    """Drives one device through connect, service discovery and reads.

    A session is single use: once closed it cannot be reconnected.
    """

    def __init__(
        self,
        peripheral: Peripheral,
        client_factory: Callable[[Any], Any] = BleakClient,
    ) -> None:
        self._peripheral = peripheral
        self._client_factory = client_factory
        self._client: Optional[Any] = None
        self._characteristics: dict[str, Any] = {}
        self._state = SessionState.DISCOVERED

    @property
    def address(self) -> str:
        return self._peripheral.address

    @property
    def state(self) -> SessionState:
        return self._state

    def has_characteristic(self, uuid: str) -> bool:
        """Check if the device exposes a characteristic. False before discovery."""
        return uuid.lower() in self._characteristics

    async def connect(self) -> None:
        """Open the BLE connection."""
        self._require(SessionState.DISCOVERED)
        logger.debug("Connecting to %s", self.address)

        self._client = self._client_factory(self._peripheral.device)
        try:
            await self._client.connect()
        except BLE_ERRORS as e:
            raise ConnectionFailure(self.address, f"connect failed: {e}") from e

        self._state = SessionState.CONNECTED

    async def discover_services(self) -> None:
        """Resolve the GATT table and index characteristics by UUID."""
        self._require(SessionState.CONNECTED)

        try:
            for service in self._client.services:
                for characteristic in service.characteristics:
                    self._characteristics[str(characteristic.uuid).lower()] = characteristic
        except BLE_ERRORS as e:
            raise ServiceDiscoveryFailure(self.address, f"service discovery failed: {e}") from e

        if not self._characteristics:
            raise ServiceDiscoveryFailure(self.address, "no characteristics discovered")

        logger.debug(
            "Discovered %d characteristics on %s",
            len(self._characteristics),
            self.address,
        )
        self._state = SessionState.SERVICES_DISCOVERED

    async def read(self, uuid: str) -> bytes:
        """Read a characteristic value.

        Raises SessionStateError before services are discovered and KeyError
        for a characteristic the device does not have. Backend errors
        propagate unchanged.
        """
        self._require(SessionState.SERVICES_DISCOVERED)
        characteristic = self._characteristics[uuid.lower()]
        return bytes(await self._client.read_gatt_char(characteristic))

    async def close(self) -> None:
        """Disconnect. Errors are logged, not raised."""
        if self._state == SessionState.CLOSED:
            return

        self._state = SessionState.CLOSED
        if self._client is None:
            return

        try:
            await self._client.disconnect()
        except Exception as e:
            logger.debug("Error disconnecting from %s: %s", self.address, e)

    async def fetch(self) -> DeviceRecord:
        """Connect, read everything and disconnect."""
        try:
            await self.connect()
            await self.discover_services()

            name = self._peripheral.name
            if not name:
                raise MissingNameError(self.address, "device did not advertise a name")

            logger.info("Found %s (%s)", name, self.address)

            data = await self._read_sensor_data()
            info = await read_device_info(self)
        finally:
            await self.close()

        return DeviceRecord(name=name, address=self.address, data=data, info=info)

    async def _read_sensor_data(self) -> SensorReading:
        if not self.has_characteristic(ARANET4_READINGS_UUID):
            raise MalformedPayloadError(self.address, "readings characteristic not present")

        try:
            payload = await self.read(ARANET4_READINGS_UUID)
        except BLE_ERRORS as e:
            raise MalformedPayloadError(self.address, f"reading sensor data failed: {e}") from e

        return decode_reading(payload, self.address)

    def _require(self, state: SessionState) -> None:
        if self._state != state:
            raise SessionStateError(
                self.address,
                f"expected state {state.value}, session is {self._state.value}",
            )
