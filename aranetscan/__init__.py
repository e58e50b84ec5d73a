"""Read Aranet4 CO2 sensors over Bluetooth Low Energy."""

__version__ = "0.1.0"
