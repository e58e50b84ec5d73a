"""Shared fakes for aranetscan tests. No Bluetooth hardware is needed."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Optional

import pytest
from bleak.exc import BleakError

from aranetscan.ble.decoder import ARANET4_READINGS_UUID
from aranetscan.ble.info import DEVICE_INFO_UUIDS
from aranetscan.ble.scanner import ARANET4_SERVICE_UUID
from aranetscan.models import DeviceInfo, DeviceRecord, Peripheral, SensorReading

# co2=500, temperature=10.0, pressure=20.0, humidity=45, battery=80
READINGS_PAYLOAD = bytes([244, 1, 200, 0, 200, 0, 45, 80])


class FakeService:
    def __init__(self, uuid: str, characteristic_uuids: list[str]) -> None:
        self.uuid = uuid
        self.characteristics = [SimpleNamespace(uuid=u) for u in characteristic_uuids]


class FakeClient:
    """Stands in for BleakClient."""

    def __init__(
        self,
        values: dict[str, bytes],
        fail_connect: bool = False,
        fail_services: bool = False,
        failing_reads: tuple[str, ...] = (),
        read_delay: float = 0.0,
    ) -> None:
        self.values = values
        self.fail_connect = fail_connect
        self.fail_services = fail_services
        self.failing_reads = failing_reads
        self.read_delay = read_delay
        self.device = None
        self.connected = False
        self.disconnected = False
        self.reads: list[str] = []

    def __call__(self, device) -> "FakeClient":
        self.device = device
        return self

    async def connect(self) -> bool:
        if self.fail_connect:
            raise BleakError("Device not found")
        self.connected = True
        return True

    @property
    def services(self) -> list[FakeService]:
        if self.fail_services:
            raise BleakError("Service Discovery has not been performed yet")
        if not self.values:
            return []
        return [FakeService(ARANET4_SERVICE_UUID, list(self.values))]

    async def read_gatt_char(self, characteristic) -> bytearray:
        self.reads.append(characteristic.uuid)
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        if characteristic.uuid in self.failing_reads:
            raise BleakError("Read failed")
        return bytearray(self.values[characteristic.uuid])

    async def disconnect(self) -> bool:
        self.disconnected = True
        return True


class FakeAdapter:
    """Stands in for BleAdapter. Events are fed through ``advertise``."""

    def __init__(self, fail_open: Optional[Exception] = None, fail_start: Optional[Exception] = None) -> None:
        self.fail_open = fail_open
        self.fail_start = fail_start
        self.events: asyncio.Queue = asyncio.Queue()
        self.opened_with: Optional[list[str]] = None
        self.scan_started = False
        self.closed = False

    def advertise(self, *peripherals: Peripheral) -> None:
        for p in peripherals:
            self.events.put_nowait(p)

    async def open(self, service_uuids: list[str]) -> None:
        if self.fail_open:
            raise self.fail_open
        self.opened_with = service_uuids

    async def start_scan(self) -> None:
        if self.fail_start:
            raise self.fail_start
        self.scan_started = True

    async def next_event(self) -> Peripheral:
        return await self.events.get()

    async def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stands in for DeviceSession. Looks up its outcome by address."""

    def __init__(self, outcomes: dict, delay: float = 0.0) -> None:
        self.outcomes = outcomes
        self.delay = delay
        self.fetched: list[str] = []

    def __call__(self, peripheral: Peripheral) -> "FakeSession._Bound":
        return FakeSession._Bound(self, peripheral)

    class _Bound:
        def __init__(self, parent: "FakeSession", peripheral: Peripheral) -> None:
            self.parent = parent
            self.peripheral = peripheral

        async def fetch(self) -> DeviceRecord:
            self.parent.fetched.append(self.peripheral.address)
            if self.parent.delay:
                await asyncio.sleep(self.parent.delay)
            outcome = self.parent.outcomes.get(self.peripheral.address)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome or make_record(self.peripheral.address, self.peripheral.name)


def make_peripheral(
    address: str,
    name: Optional[str] = "Aranet4 0001",
    services: tuple[str, ...] = (ARANET4_SERVICE_UUID,),
) -> Peripheral:
    return Peripheral(address=address, name=name, service_uuids=list(services), device=object())


def make_record(address: str, name: Optional[str] = None) -> DeviceRecord:
    return DeviceRecord(
        name=name or f"Aranet4 {address[-5:].replace(':', '')}",
        address=address,
        data=SensorReading(co2=500, temperature=10.0, pressure=20.0, humidity=45.0, battery=80),
        info=DeviceInfo(),
    )


@pytest.fixture
def full_values() -> dict[str, bytes]:
    """Characteristic values of a device exposing everything."""
    values = {ARANET4_READINGS_UUID: READINGS_PAYLOAD}
    values[DEVICE_INFO_UUIDS["model_number"]] = b"Aranet4 HOME"
    values[DEVICE_INFO_UUIDS["serial_number"]] = b"123456789"
    values[DEVICE_INFO_UUIDS["firmware_revision"]] = b"v1.2.0"
    values[DEVICE_INFO_UUIDS["hardware_revision"]] = b"1.0"
    values[DEVICE_INFO_UUIDS["software_revision"]] = b"v1.2.0"
    values[DEVICE_INFO_UUIDS["manufacturer_name"]] = b"SAF Tehnika"
    return values
