"""Shared pytest fixtures for the test suite."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from dht_exporter.dht.models import Reading
from dht_exporter.lib.config import SensorKind, SensorSettings, Settings
from dht_exporter.lib.gauges import GaugeState

_SETTINGS_ENV_VARS = [name.upper() for name in Settings.model_fields]


class FakeClock:
    """Clock whose time only moves when the code under test sleeps."""

    def __init__(self, start: datetime) -> None:
        self.start = start
        self.elapsed = 0.0
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[int], None] | None = None

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.elapsed)

    def monotonic(self) -> float:
        return 1000.0 + self.elapsed

    def advance(self, seconds: float) -> None:
        self.elapsed += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.elapsed += seconds
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))
        await asyncio.sleep(0)


class ScriptedSensor:
    """Sensor replaying a script of measurements.

    Each entry is either a ``(temperature, humidity)`` pair or an exception
    raised by the read. The last entry repeats once the script runs out.
    """

    def __init__(self, script: list) -> None:
        self._script = list(script)
        self._humidity: float | None = None
        self.reads = 0
        self.exited = False

    @property
    def temperature(self) -> float | None:
        entry = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        self.reads += 1
        if isinstance(entry, Exception):
            raise entry
        temperature, self._humidity = entry
        return temperature

    @property
    def humidity(self) -> float | None:
        return self._humidity

    def exit(self) -> None:
        self.exited = True


@pytest.fixture(autouse=True)
def configure_caplog(caplog):
    """Ensure caplog captures logs from the dht_exporter namespace."""
    caplog.set_level(logging.DEBUG, logger="dht_exporter")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep settings tests independent from the environment and .env files."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def frozen_time():
    """Return a fixed datetime for deterministic tests."""
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def fake_clock(frozen_time):
    return FakeClock(frozen_time)


@pytest.fixture
def sensor_settings():
    return SensorSettings(
        kind=SensorKind.DHT22,
        pin=4,
        max_retries=5,
        retry_delay_sec=2.0,
        interval_sec=5.0,
    )


@pytest.fixture
def make_sensor():
    """Factory for sensors replaying a script of measurements."""
    return ScriptedSensor


@pytest.fixture
def gauges(fake_clock):
    return GaugeState(clock=fake_clock)


@pytest.fixture
def sample_reading(frozen_time):
    """Create a valid DHT22 reading."""
    return Reading(
        temperature=23.5,
        humidity=60.0,
        retries=1,
        timestamp=frozen_time,
    )
