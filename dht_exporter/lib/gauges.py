"""Shared gauge state between the sampler and the metrics endpoint.

The sampler is the only writer. Every update builds a new immutable
``GaugeSnapshot`` and swaps it in under a lock, so a scrape always sees all
values of one sampling round and never a partially written one.
"""
import threading
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import datetime

from prometheus_client import (
    GCCollector,
    PlatformCollector,
    ProcessCollector,
)
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector, CollectorRegistry

from dht_exporter.dht.models import Reading
from dht_exporter.lib.clock import Clock, SystemClock


@dataclass(frozen=True, slots=True)
class GaugeSnapshot:
    last_success_at: float
    temperature: float | None = None
    humidity: float | None = None
    retries: int | None = None
    interval_sec: float | None = None
    vpd: float | None = None
    timestamp: datetime | None = None
    read_errors: int = 0
    successes: int = 0


class GaugeState(Collector):
    """Latest sensor values, exported as a Prometheus collector."""

    def __init__(
        self,
        *,
        namespace: str = "",
        clock: Clock | None = None,
    ) -> None:
        self._namespace = namespace
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        # Age of the first success is measured from start-up
        self._snapshot = GaugeSnapshot(last_success_at=self._clock.monotonic())

    def snapshot(self) -> GaugeSnapshot:
        with self._lock:
            return self._snapshot

    def record_success(
        self,
        reading: Reading,
        *,
        interval_sec: float,
        at: float,
        vpd: float | None = None,
    ) -> None:
        """Publish the values of a successful sampling round.

        Args:
            reading: The validated reading.
            interval_sec: Seconds since the previous successful round.
            at: Monotonic time of this success.
            vpd: Vapor pressure deficit, if computed.
        """
        with self._lock:
            self._snapshot = replace(
                self._snapshot,
                temperature=reading.temperature,
                humidity=reading.humidity,
                retries=reading.retries,
                interval_sec=interval_sec,
                vpd=vpd,
                timestamp=reading.timestamp,
                last_success_at=at,
                successes=self._snapshot.successes + 1,
            )

    def record_failure(self) -> None:
        """Count a failed sampling round, keeping the published values."""
        with self._lock:
            self._snapshot = replace(
                self._snapshot, read_errors=self._snapshot.read_errors + 1
            )

    def seconds_since_last_success(self) -> float:
        return self._clock.monotonic() - self.snapshot().last_success_at

    def _name(self, name: str) -> str:
        return f"{self._namespace}_{name}" if self._namespace else name

    def _gauge(self, name: str, documentation: str, value: float) -> GaugeMetricFamily:
        return GaugeMetricFamily(self._name(name), documentation, value=value)

    def collect(self) -> Iterator[Metric]:
        snapshot = self.snapshot()
        age = self._clock.monotonic() - snapshot.last_success_at

        if snapshot.successes:
            yield self._gauge(
                "last_temperature",
                "Last measured temperature by DHT sensor",
                snapshot.temperature,
            )
            yield self._gauge(
                "last_humidity",
                "Last measured humidity by DHT sensor",
                snapshot.humidity,
            )
            yield self._gauge(
                "last_measurement_retries",
                "Number of retries by DHT sensor since it got values",
                snapshot.retries,
            )
            yield self._gauge(
                "last_successful_measurement_seconds",
                "Number of seconds between the last two successful measurements",
                snapshot.interval_sec,
            )
            yield self._gauge(
                "last_successful_measurement_timestamp_seconds",
                "Unix time of the last successful measurement",
                snapshot.timestamp.timestamp(),
            )
            if snapshot.vpd is not None:
                yield self._gauge(
                    "vapor_pressure_deficit",
                    "Vapor pressure deficit in kPa derived from the last measurement",
                    snapshot.vpd,
                )

        yield self._gauge(
            "seconds_since_last_success",
            "Number of seconds since the last successful measurement",
            age,
        )
        yield CounterMetricFamily(
            self._name("sensor_read_errors"),
            "Number of sampling rounds without a valid reading",
            value=snapshot.read_errors,
        )
        yield CounterMetricFamily(
            self._name("sensor_reads"),
            "Number of sampling rounds with a valid reading",
            value=snapshot.successes,
        )


def build_registry(
    gauges: GaugeState, *, include_process_metrics: bool = True
) -> CollectorRegistry:
    """Create the registry served on /metrics."""
    registry = CollectorRegistry()
    registry.register(gauges)
    if include_process_metrics:
        ProcessCollector(registry=registry)
        PlatformCollector(registry=registry)
        GCCollector(registry=registry)
    return registry
