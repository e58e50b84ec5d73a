"""Configuration loading from YAML."""

import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError
from .models import ErrorPolicy, ScanConfig

logger = logging.getLogger(__name__)


def _parse_timeout(value: Any) -> float:
    timeout = float(value)
    if not math.isfinite(timeout) or timeout <= 0:
        raise ValueError(f"timeout must be a positive number, got {value}")
    return timeout


def _parse_max_devices(value: Any) -> Optional[int]:
    if value is None:
        return None
    count = int(value)
    if count < 0:
        raise ValueError(f"max_devices must not be negative, got {value}")
    return count


def _parse_workers(value: Any) -> int:
    workers = int(value)
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {value}")
    return workers


def _parse_adapter(value: Any) -> Optional[str]:
    return str(value) if value else None


_PARSERS = {
    "timeout": _parse_timeout,
    "max_devices": _parse_max_devices,
    "adapter": _parse_adapter,
    "on_error": ErrorPolicy,
    "workers": _parse_workers,
}


def load_config(config_path: Path) -> ScanConfig:
    """Load configuration from a YAML file.

    Invalid values are logged and replaced by their defaults.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    values = {}
    for key, raw in data.items():
        parser = _PARSERS.get(key)
        if parser is None:
            logger.warning("Unknown configuration key: %s", key)
            continue
        try:
            values[key] = parser(raw)
            logger.debug("Loaded %s = %s", key, values[key])
        except (TypeError, ValueError) as e:
            logger.warning("Invalid %s configuration: %s - %s", key, raw, e)

    config = ScanConfig(**values)
    logger.debug("Loaded configuration from %s", config_path)
    return config


def apply_overrides(config: ScanConfig, **overrides: Any) -> ScanConfig:
    """Return a copy of config with the non-None overrides applied.

    Raises ConfigError for invalid values.
    """
    values = {}
    for key, raw in overrides.items():
        if raw is None:
            continue
        parser = _PARSERS.get(key)
        if parser is None:
            raise ConfigError(f"Unknown setting: {key}")
        try:
            values[key] = parser(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid {key}: {e}") from e

    return replace(config, **values)
