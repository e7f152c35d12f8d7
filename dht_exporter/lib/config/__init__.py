"""Centralized configuration for the DHT exporter.

This package provides:
- Enums for sensor kinds, measures and units
- Pydantic settings models for configuration
- The command line parser layered on top of the environment
"""

from .cli import build_parser, load_settings
from .enums import MeasureName, SensorKind, Unit
from .settings import (
    SENSOR_BOUNDS,
    MetricsSettings,
    SensorSettings,
    ServerSettings,
    Settings,
    split_listen_addr,
)

__all__ = [
    # Enums
    "MeasureName",
    "SensorKind",
    "Unit",
    # Settings models
    "MetricsSettings",
    "SensorSettings",
    "ServerSettings",
    "Settings",
    # Constants
    "SENSOR_BOUNDS",
    # Functions
    "build_parser",
    "load_settings",
    "split_listen_addr",
]
