"""Rendering of discovery results."""

from __future__ import annotations

import json
from typing import Optional

from .models import DeviceRecord

INFO_LABELS = (
    ("model_number", "Model"),
    ("serial_number", "Serial"),
    ("firmware_revision", "Firmware"),
    ("hardware_revision", "Hardware"),
    ("software_revision", "Software"),
    ("manufacturer_name", "Manufacturer"),
)


def records_to_json(records: list[DeviceRecord], indent: Optional[int] = None) -> str:
    """Serialize records as a JSON array. Unset info fields become null."""
    return json.dumps([r.to_dict() for r in records], indent=indent)


def format_record(record: DeviceRecord) -> str:
    """Format one device as a human-readable block."""
    data = record.data
    lines = [
        f"{record.name} ({record.address})",
        f"  CO2:          {data.co2} ppm",
        f"  Temperature:  {data.temperature:.2f} °C",
        f"  Pressure:     {data.pressure:.1f} hPa",
        f"  Humidity:     {data.humidity:.0f} %",
        f"  Battery:      {data.battery} %",
    ]

    for field_name, label in INFO_LABELS:
        value = getattr(record.info, field_name)
        if value is not None:
            lines.append(f"  {label + ':':<14}{value}")

    return "\n".join(lines)


def format_text(records: list[DeviceRecord]) -> str:
    """Format all devices, separated by blank lines."""
    if not records:
        return "No devices found"
    return "\n\n".join(format_record(r) for r in records)
