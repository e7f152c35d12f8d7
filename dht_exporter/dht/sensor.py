"""DHT sensor access.

The single-wire protocol is handled by ``adafruit_dht``. Reads are flaky by
nature (checksum errors, missed edges), so every measurement goes through a
bounded retry loop.
"""

from concurrent.futures import Executor
from typing import Protocol

from dht_exporter.dht.models import Reading
from dht_exporter.lib.clock import Clock, SystemClock
from dht_exporter.lib.config import SensorKind, SensorSettings
from dht_exporter.lib.exceptions import (
    ConfigError,
    RetryExhaustedError,
    SensorReadError,
)
from dht_exporter.lib.retry import with_retry
from dht_exporter.logging import get_logger

logger = get_logger("dht.sensor")

# adafruit_dht driver class per sensor kind
_DRIVER_CLASSES = {
    SensorKind.DHT11: "DHT11",
    SensorKind.DHT22: "DHT22",
}


class DHTSensor(Protocol):
    """Protocol for DHT sensor interface."""

    @property
    def temperature(self) -> float | None: ...

    @property
    def humidity(self) -> float | None: ...

    def exit(self) -> None: ...


def create_sensor(settings: SensorSettings) -> DHTSensor:
    """Create sensor based on configuration.

    Raises:
        ConfigError: If the sensor kind or pin is not supported.
    """
    if settings.mock:
        from dht_exporter.lib.mock import MockDHTSensor

        logger.info("Using mock DHT sensor")
        return MockDHTSensor(failure_rate=settings.mock_failure_rate)

    if settings.kind not in _DRIVER_CLASSES:
        raise ConfigError(
            f"Sensor type {settings.kind.name} is not supported by adafruit_dht"
        )

    import adafruit_dht
    import board

    factory = getattr(adafruit_dht, _DRIVER_CLASSES[settings.kind])
    try:
        pin = getattr(board, f"D{settings.pin}")
    except AttributeError as e:
        raise ConfigError(
            f"GPIO pin D{settings.pin} is not available on this board"
        ) from e

    logger.info("Using %s sensor on GPIO%d", settings.kind.name, settings.pin)
    return factory(pin)  # type: ignore[no-any-return]


def _measure(sensor: DHTSensor) -> tuple[float, float]:
    """Take one measurement, failing on incomplete data."""
    temperature = sensor.temperature
    humidity = sensor.humidity
    if temperature is None or humidity is None:
        raise RuntimeError("DHT sensor returned no data")
    return float(temperature), float(humidity)


async def read_reading(
    sensor: DHTSensor,
    *,
    max_retries: int,
    retry_delay_sec: float,
    executor: Executor | None = None,
    clock: Clock | None = None,
) -> Reading:
    """Read the sensor, retrying transient failures.

    Args:
        sensor: Sensor to read.
        max_retries: Maximum number of attempts.
        retry_delay_sec: Delay between two attempts.
        executor: Executor the blocking driver calls run in.
        clock: Clock used for retry delays and the reading timestamp.

    Raises:
        SensorReadError: If no attempt produced a reading.
    """
    clock = clock or SystemClock()
    try:
        result = await with_retry(
            lambda: _measure(sensor),
            name="DHT read",
            logger=logger,
            max_attempts=max_retries,
            backoff_sec=retry_delay_sec,
            retryable_exceptions=(RuntimeError,),
            executor=executor,
            clock=clock,
        )
    except RetryExhaustedError as e:
        raise SensorReadError(e.name, e.attempts, e.last_error) from e

    temperature, humidity = result.value
    return Reading(
        temperature=temperature,
        humidity=humidity,
        retries=result.retries,
        timestamp=clock.now(),
    )
