"""Settings models and configuration loading for the DHT exporter."""

import logging
import re
from functools import cached_property
from typing import Annotated, Any, Self

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from dht_exporter.lib.config.enums import MeasureName, SensorKind

# Physical measuring range of each supported sensor
SENSOR_BOUNDS: dict[SensorKind, dict[MeasureName, tuple[float, float]]] = {
    SensorKind.DHT11: {
        MeasureName.TEMPERATURE: (0, 50),
        MeasureName.HUMIDITY: (0, 100),
    },
    SensorKind.DHT12: {
        MeasureName.TEMPERATURE: (-20, 60),
        MeasureName.HUMIDITY: (0, 100),
    },
    SensorKind.DHT22: {
        MeasureName.TEMPERATURE: (-40, 80),
        MeasureName.HUMIDITY: (0, 100),
    },
}

# Patterns
_DURATION_PATTERN = re.compile(r"^(?:\d+(?:\.\d+)?(?:ms|h|m|s))+$")
_DURATION_PART_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_METRIC_NAMESPACE_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def _parse_bool(v: Any) -> bool:
    """Parse boolean from string '1'/'0' or actual bool."""
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


def _parse_int_code(v: Any) -> Any:
    """Parse an integer code given as a string (environment, flags)."""
    if isinstance(v, str) and v.strip().isdigit():
        return int(v)
    return v


def _parse_duration(v: Any) -> Any:
    """Parse a duration in seconds.

    Accepts plain numbers (``5``, ``2.5``) and Go style duration strings
    (``15s``, ``1m30s``, ``500ms``).
    """
    if not isinstance(v, str):
        return v
    text = v.strip()
    try:
        return float(text)
    except ValueError:
        pass
    if not _DURATION_PATTERN.match(text):
        raise ValueError(f"invalid duration {v!r}")
    return sum(
        float(amount) * _DURATION_UNITS[unit]
        for amount, unit in _DURATION_PART_PATTERN.findall(text)
    )


def split_listen_addr(addr: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address.

    An empty host (``:2112``) means all interfaces. IPv6 hosts may be
    bracketed (``[::1]:2112``).
    """
    host, sep, port = addr.strip().rpartition(":")
    if not sep:
        raise ValueError(f"listen address {addr!r} must be in host:port form")
    if not port.isdigit() or not 0 <= int(port) <= 65535:
        raise ValueError(f"invalid port in listen address {addr!r}")
    return host.strip("[]"), int(port)


def _validate_listen_addr(v: str) -> str:
    split_listen_addr(v)
    return v.strip()


def _validate_namespace(v: str) -> str:
    """Validate a metric namespace, dropping a trailing separator."""
    v = v.strip().rstrip("_")
    if v and not _METRIC_NAMESPACE_PATTERN.match(v):
        raise ValueError(f"invalid metric namespace {v!r}")
    return v


_BoolFromStr = Annotated[bool, BeforeValidator(_parse_bool)]
_Duration = Annotated[float, BeforeValidator(_parse_duration)]
_SensorKindCode = Annotated[SensorKind, BeforeValidator(_parse_int_code)]
_ListenAddr = Annotated[str, AfterValidator(_validate_listen_addr)]
_Namespace = Annotated[str, AfterValidator(_validate_namespace)]


class SensorSettings(BaseModel):
    """DHT sensor settings."""

    model_config = ConfigDict(frozen=True)

    kind: SensorKind = SensorKind.DHT22
    pin: int = 4
    max_retries: int = 5
    retry_delay_sec: float = 2.0
    interval_sec: float = 5.0
    mock: bool = False
    mock_failure_rate: float = 0.0

    @property
    def bounds(self) -> dict[MeasureName, tuple[float, float]]:
        """Physical measuring range of the configured sensor."""
        return SENSOR_BOUNDS[self.kind]


class ServerSettings(BaseModel):
    """Metrics HTTP server settings."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 2112
    shutdown_grace_sec: float = 10.0
    access_log: bool = False


class MetricsSettings(BaseModel):
    """Exported metrics settings."""

    model_config = ConfigDict(frozen=True)

    namespace: str = ""
    enable_vpd: bool = True
    include_process_metrics: bool = True
    stale_after_sec: float = 60.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Command line flags are applied on top of these, see
    ``dht_exporter.lib.config.cli.load_settings``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Sensor
    sensor_type: _SensorKindCode = SensorKind.DHT22
    sensor_pin: int = Field(default=4, ge=0, le=27)  # BCM GPIO number
    sensor_max_retries: int = Field(default=5, ge=1)
    sensor_retry_delay_sec: _Duration = Field(default=2.0, ge=0)
    interval_sec: _Duration = Field(default=5.0, gt=0)
    mock_sensors: _BoolFromStr = False
    mock_failure_rate: float = Field(default=0.0, ge=0, le=1)

    # Server
    listen_addr: _ListenAddr = ":2112"
    shutdown_grace_sec: _Duration = Field(default=10.0, gt=0)

    # Metrics
    metrics_namespace: _Namespace = ""
    enable_vpd: _BoolFromStr = True
    include_process_metrics: _BoolFromStr = True
    stale_after_sec: _Duration = Field(default=60.0, gt=0)

    # Logging
    verbose: int = Field(default=0, ge=0)

    @cached_property
    def sensor(self) -> SensorSettings:
        """Get sensor settings as nested object."""
        return SensorSettings(
            kind=self.sensor_type,
            pin=self.sensor_pin,
            max_retries=self.sensor_max_retries,
            retry_delay_sec=self.sensor_retry_delay_sec,
            interval_sec=self.interval_sec,
            mock=self.mock_sensors,
            mock_failure_rate=self.mock_failure_rate,
        )

    @cached_property
    def server(self) -> ServerSettings:
        """Get server settings as nested object."""
        host, port = split_listen_addr(self.listen_addr)
        return ServerSettings(
            host=host or "0.0.0.0",
            port=port,
            shutdown_grace_sec=self.shutdown_grace_sec,
            access_log=self.verbose >= 2,
        )

    @cached_property
    def metrics(self) -> MetricsSettings:
        """Get metrics settings as nested object."""
        return MetricsSettings(
            namespace=self.metrics_namespace,
            enable_vpd=self.enable_vpd,
            include_process_metrics=self.include_process_metrics,
            stale_after_sec=self.stale_after_sec,
        )

    @property
    def log_level(self) -> int:
        """Logging level selected by the verbosity flag."""
        return logging.DEBUG if self.verbose else logging.INFO

    @model_validator(mode="after")
    def validate_settings(self) -> Self:
        """Validate cross-field configuration constraints."""
        errors: list[str] = []

        if self.stale_after_sec < self.interval_sec:
            errors.append(
                f"STALE_AFTER_SEC ({self.stale_after_sec}) must not be shorter "
                f"than INTERVAL_SEC ({self.interval_sec})"
            )

        if errors:
            raise ValueError(
                "Configuration validation failed:\n  - "
                + "\n  - ".join(errors)
            )

        return self
