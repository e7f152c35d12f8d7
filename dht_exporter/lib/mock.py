"""Mock sensor for development without hardware.

Used by the exporter when MOCK_SENSORS=1 or ``--mock-sensor`` is set.
"""

import random


def random_walk(
    current: float, drift: float, min_val: float, max_val: float
) -> float:
    """Generate next value using random walk with bounds."""
    change = random.gauss(0, drift)
    new_val = current + change
    return max(min_val, min(max_val, new_val))


class MockDHTSensor:
    """Mock DHT sensor that generates realistic readings.

    - Temperature: drift=0.15, bounds 15-30
    - Humidity: drift=0.3, bounds 30-70

    A ``failure_rate`` above zero makes reads fail with the same
    ``RuntimeError`` the real driver raises on checksum errors.
    """

    def __init__(self, failure_rate: float = 0.0) -> None:
        self._temperature = random.uniform(20.0, 23.0)
        self._humidity = random.uniform(45.0, 55.0)
        self._failure_rate = failure_rate

    def _maybe_fail(self) -> None:
        if self._failure_rate and random.random() < self._failure_rate:
            raise RuntimeError("Checksum did not validate. Try again.")

    @property
    def temperature(self) -> float:
        self._maybe_fail()
        self._temperature = random_walk(
            self._temperature, drift=0.15, min_val=15.0, max_val=30.0
        )
        return round(self._temperature, 1)

    @property
    def humidity(self) -> float:
        self._maybe_fail()
        self._humidity = random_walk(
            self._humidity, drift=0.3, min_val=30.0, max_val=70.0
        )
        return round(self._humidity, 1)

    def exit(self) -> None:
        """No-op for mock sensor."""
