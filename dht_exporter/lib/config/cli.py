"""Command line interface for the exporter settings.

Flags mirror the environment variables read by ``Settings``; a flag given on
the command line takes precedence over the environment and ``.env`` file.
"""

import argparse
from collections.abc import Sequence
from typing import Any, NoReturn

from pydantic import ValidationError

from dht_exporter.lib.config.settings import Settings
from dht_exporter.lib.exceptions import ConfigError


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser raising ConfigError instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise ConfigError(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Every option defaults to None so that only the flags actually given
    override the environment.
    """
    parser = _ArgumentParser(
        prog="dht-exporter",
        description="Expose DHT temperature and humidity readings as Prometheus metrics.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        dest="verbose",
        help="Show verbose debug information (repeat to log every request)",
    )
    parser.add_argument(
        "--sensor-type",
        type=int,
        dest="sensor_type",
        help="DHT sensor type: 1=DHT11, 2=DHT12, 3=DHT22/AM2302 (default: 3)",
    )
    parser.add_argument(
        "--sensor-pin",
        type=int,
        dest="sensor_pin",
        help="DHT sensor GPIO pin, BCM numbering (default: 4)",
    )
    parser.add_argument(
        "--sensor-max-retries",
        type=int,
        dest="sensor_max_retries",
        help="Maximum sensor read attempts per measurement (default: 5)",
    )
    parser.add_argument(
        "--sensor-retry-delay",
        dest="sensor_retry_delay_sec",
        help="Delay between two read attempts, e.g. 2 or 1500ms (default: 2s)",
    )
    parser.add_argument(
        "-l",
        "--listen-addr",
        dest="listen_addr",
        help="Listen address:port (default: :2112)",
    )
    parser.add_argument(
        "--interval",
        dest="interval_sec",
        help="Interval between measurements, e.g. 5, 15s or 1m (default: 5s)",
    )
    parser.add_argument(
        "--namespace",
        dest="metrics_namespace",
        help="Prefix for every exported metric name, e.g. dht",
    )
    parser.add_argument(
        "--no-vpd",
        action="store_const",
        const=False,
        dest="enable_vpd",
        help="Do not export the vapor pressure deficit",
    )
    parser.add_argument(
        "--no-process-metrics",
        action="store_const",
        const=False,
        dest="include_process_metrics",
        help="Do not export process and platform metrics",
    )
    parser.add_argument(
        "--mock-sensor",
        action="store_const",
        const=True,
        dest="mock_sensors",
        help="Generate random readings instead of reading a real sensor",
    )
    parser.add_argument(
        "--mock-failure-rate",
        type=float,
        dest="mock_failure_rate",
        help="Share of mock sensor reads that fail, from 0 to 1 (default: 0)",
    )
    parser.add_argument(
        "--shutdown-grace",
        dest="shutdown_grace_sec",
        help="Time allowed for in-flight requests on shutdown (default: 10s)",
    )
    parser.add_argument(
        "--stale-after",
        dest="stale_after_sec",
        help="Age of the last reading after which /health fails (default: 60s)",
    )
    return parser


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line flags and load the settings.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv``.

    Raises:
        ConfigError: If a flag or environment value is invalid.
    """
    args = build_parser().parse_args(argv)
    overrides: dict[str, Any] = {
        key: value for key, value in vars(args).items() if value is not None
    }
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e
