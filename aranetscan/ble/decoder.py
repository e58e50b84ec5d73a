"""Aranet4 current readings decoder."""

import struct
from typing import Optional

from ..errors import MalformedPayloadError
from ..models import SensorReading

# Aranet4 "current readings" characteristic
ARANET4_READINGS_UUID = "f0cd3001-95da-4f4b-9ac8-aa55d312af0c"

READINGS_FORMAT = "<HHHBB"
READINGS_LENGTH = struct.calcsize(READINGS_FORMAT)


def decode_reading(data: bytes, address: Optional[str] = None) -> SensorReading:
    """
    Decode the current readings characteristic value.

    Format (little-endian):
    - Bytes 0-1: CO2 (ppm)
    - Bytes 2-3: Temperature (1/20 °C per unit)
    - Bytes 4-5: Pressure (0.1 hPa per unit)
    - Byte 6: Humidity (%)
    - Byte 7: Battery (%)

    Trailing bytes are ignored. Values are not clamped.

    Raises:
        MalformedPayloadError: if fewer than 8 bytes are given
    """
    if len(data) < READINGS_LENGTH:
        raise MalformedPayloadError(
            address,
            f"readings payload too short: {len(data)} bytes, need {READINGS_LENGTH}",
        )

    co2, temp_raw, pressure_raw, humidity, battery = struct.unpack_from(READINGS_FORMAT, data)

    return SensorReading(
        co2=co2,
        temperature=temp_raw / 20.0,
        pressure=pressure_raw / 10.0,
        humidity=float(humidity),
        battery=battery,
    )
