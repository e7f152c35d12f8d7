"""Sample the DHT sensor and publish the readings as gauges.

Each round reads the sensor with a bounded number of attempts, checks the
values against the physical range of the sensor, and swaps the derived
gauge values into the shared ``GaugeState``. A failed round only gets
logged and counted: the previously published values stay in place until
the next successful round.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import override

from dht_exporter.dht.models import Reading
from dht_exporter.dht.physics import vapor_pressure_deficit
from dht_exporter.dht.sensor import DHTSensor, read_reading
from dht_exporter.lib.clock import Clock
from dht_exporter.lib.config import MeasureName, SensorSettings
from dht_exporter.lib.exceptions import SensorReadError
from dht_exporter.lib.gauges import GaugeState
from dht_exporter.lib.polling import PollingService
from dht_exporter.logging import get_logger

logger = get_logger("dht.polling")

# Upper bound on waiting for an in-flight read before releasing the sensor
_RELEASE_TIMEOUT_SEC = 5.0


class DHTSamplerService(PollingService[Reading]):
    """Polling service for a DHT temperature/humidity sensor."""

    def __init__(
        self,
        sensor: DHTSensor,
        gauges: GaugeState,
        settings: SensorSettings,
        *,
        enable_vpd: bool = True,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(
            name=settings.kind.name, frequency_sec=settings.interval_sec, clock=clock
        )
        self._dht = sensor
        self._gauges = gauges
        self._settings = settings
        self._enable_vpd = enable_vpd
        # One worker: driver calls never overlap and run in submission order
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dht-read")
        self._last_success = self.clock.monotonic()

    @override
    async def initialize(self) -> None:
        logger.info(
            "Sampling %s on GPIO%d, up to %d attempt(s) per measurement",
            self._settings.kind.name,
            self._settings.pin,
            self._settings.max_retries,
        )

    @override
    async def cleanup(self) -> None:
        """Release the sensor once any in-flight read has returned.

        A cancelled round leaves its read running in the worker thread, so
        ``exit()`` is queued behind it on the same executor.
        """
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(self._executor, self._dht.exit),
                timeout=_RELEASE_TIMEOUT_SEC,
            )
        except TimeoutError:
            logger.error(
                "Sensor read still running after %.0fs, leaving the sensor open",
                _RELEASE_TIMEOUT_SEC,
            )
        finally:
            self._executor.shutdown(wait=False)

    @override
    async def poll(self) -> Reading | None:
        """Read the sensor, retrying transient failures."""
        reading = await read_reading(
            self._dht,
            max_retries=self._settings.max_retries,
            retry_delay_sec=self._settings.retry_delay_sec,
            executor=self._executor,
            clock=self.clock,
        )
        logger.info("Read %s after %d retries", reading, reading.retries)
        return reading

    @override
    async def audit(self, reading: Reading) -> bool:
        """Check the reading against the physical range of the sensor."""
        for name, (bmin, bmax) in self._settings.bounds.items():
            measure = reading.measure(name)
            if measure < bmin or measure > bmax:
                logger.error(
                    "%s reading outside bounds of %s sensor: %s",
                    name.capitalize(),
                    self._settings.kind.name,
                    measure,
                )
                self._gauges.record_failure()
                return False
        return True

    @override
    async def persist(self, reading: Reading) -> None:
        """Publish the reading and its derived values."""
        now = self.clock.monotonic()
        interval = now - self._last_success
        self._last_success = now

        vpd = None
        if self._enable_vpd:
            vpd = vapor_pressure_deficit(
                reading.measure(MeasureName.TEMPERATURE),
                reading.measure(MeasureName.HUMIDITY),
            )

        self._gauges.record_success(reading, interval_sec=interval, at=now, vpd=vpd)

    @override
    def on_poll_error(self, error: Exception) -> None:
        """Count the failed round; sensor failures are expected."""
        self._gauges.record_failure()
        if isinstance(error, SensorReadError):
            logger.error("DHT sensor reported: %s", error)
        else:
            super().on_poll_error(error)
