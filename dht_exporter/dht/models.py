"""Domain models for DHT sensor readings."""

from dataclasses import dataclass
from datetime import datetime

from dht_exporter.lib.config import MeasureName, Unit


@dataclass(frozen=True, slots=True)
class Reading:
    temperature: float
    humidity: float
    retries: int
    timestamp: datetime

    def measure(self, name: MeasureName) -> float:
        return getattr(self, name)

    def __str__(self) -> str:
        return f"{self.temperature:.1f}{Unit.CELSIUS}, {self.humidity:.1f}{Unit.PERCENT}"
