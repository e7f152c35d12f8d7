"""Enumerations for the DHT exporter."""

from enum import IntEnum, StrEnum


class SensorKind(IntEnum):
    """DHT sensor models, keyed by their ``--sensor-type`` code."""

    DHT11 = 1
    DHT12 = 2
    DHT22 = 3
    AM2302 = 3  # Same chip as the DHT22


class Unit(StrEnum):
    """Measurement units for sensor readings."""

    CELSIUS = "°C"
    PERCENT = "%"


class MeasureName(StrEnum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
