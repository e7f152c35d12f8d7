"""Tests for the configuration module."""

import logging

import pytest
from pydantic import ValidationError

from dht_exporter.lib.config import (
    SensorKind,
    Settings,
    load_settings,
    split_listen_addr,
)
from dht_exporter.lib.exceptions import ConfigError


class TestSettingsDefaults:
    def test_default_values(self):
        settings = Settings()

        assert settings.sensor.kind is SensorKind.DHT22
        assert settings.sensor.pin == 4
        assert settings.sensor.max_retries == 5
        assert settings.sensor.interval_sec == 5.0
        assert settings.sensor.mock is False
        assert settings.server.host == "0.0.0.0"
        assert settings.server.port == 2112
        assert settings.server.shutdown_grace_sec == 10.0
        assert settings.server.access_log is False
        assert settings.metrics.namespace == ""
        assert settings.metrics.enable_vpd is True
        assert settings.log_level == logging.INFO

    def test_am2302_is_dht22(self):
        assert SensorKind.AM2302 is SensorKind.DHT22

    def test_settings_are_frozen(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.sensor_pin = 17


class TestEnvironment:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SENSOR_TYPE", "1")
        monkeypatch.setenv("SENSOR_PIN", "17")
        monkeypatch.setenv("LISTEN_ADDR", "127.0.0.1:9100")
        monkeypatch.setenv("MOCK_SENSORS", "1")

        settings = Settings()

        assert settings.sensor.kind is SensorKind.DHT11
        assert settings.sensor.pin == 17
        assert settings.sensor.mock is True
        assert settings.server.host == "127.0.0.1"
        assert settings.server.port == 9100

    def test_reads_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("INTERVAL_SEC=15s\nMETRICS_NAMESPACE=dht\n")

        settings = Settings()

        assert settings.interval_sec == 15.0
        assert settings.metrics.namespace == "dht"


class TestDurations:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("15", 15.0),
            ("2.5", 2.5),
            ("15s", 15.0),
            ("1m30s", 90.0),
            ("500ms", 0.5),
            ("1h", 3600.0),
            (7, 7.0),
        ],
    )
    def test_parses_durations(self, raw, expected):
        assert Settings(interval_sec=raw).interval_sec == expected

    @pytest.mark.parametrize("raw", ["5 minutes", "s", "-5", "1d"])
    def test_rejects_invalid_durations(self, raw):
        with pytest.raises(ValidationError):
            Settings(interval_sec=raw)


class TestListenAddr:
    @pytest.mark.parametrize(
        ("addr", "expected"),
        [
            (":2112", ("", 2112)),
            ("127.0.0.1:9100", ("127.0.0.1", 9100)),
            ("localhost:8080", ("localhost", 8080)),
            ("[::1]:2112", ("::1", 2112)),
        ],
    )
    def test_split(self, addr, expected):
        assert split_listen_addr(addr) == expected

    @pytest.mark.parametrize("addr", ["2112", "host:", "host:http", "host:70000"])
    def test_invalid(self, addr):
        with pytest.raises(ValueError):
            split_listen_addr(addr)


class TestValidation:
    def test_namespace_trailing_underscore_dropped(self):
        assert Settings(metrics_namespace="dht_").metrics.namespace == "dht"

    def test_invalid_namespace(self):
        with pytest.raises(ValidationError):
            Settings(metrics_namespace="1-dht")

    def test_unknown_sensor_type(self):
        with pytest.raises(ValidationError):
            Settings(sensor_type=9)

    def test_pin_out_of_range(self):
        with pytest.raises(ValidationError):
            Settings(sensor_pin=40)

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_mock_failure_rate_range(self, rate):
        with pytest.raises(ValidationError):
            Settings(mock_failure_rate=rate)

    def test_max_retries_at_least_one(self):
        with pytest.raises(ValidationError):
            Settings(sensor_max_retries=0)

    def test_stale_after_shorter_than_interval(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(interval_sec=30, stale_after_sec=10)
        assert "STALE_AFTER_SEC" in str(exc_info.value)


class TestLoadSettings:
    def test_no_flags_uses_defaults(self):
        settings = load_settings([])
        assert settings.model_dump() == Settings().model_dump()

    def test_flags(self):
        settings = load_settings(
            [
                "--sensor-type", "1",
                "--sensor-pin", "17",
                "--sensor-max-retries", "3",
                "--sensor-retry-delay", "1500ms",
                "-l", "127.0.0.1:9100",
                "--interval", "15s",
                "--namespace", "dht",
                "--no-vpd",
                "--no-process-metrics",
                "--mock-sensor",
                "--mock-failure-rate", "0.25",
                "--shutdown-grace", "5",
                "--stale-after", "2m",
            ]
        )

        assert settings.sensor.kind is SensorKind.DHT11
        assert settings.sensor.pin == 17
        assert settings.sensor.max_retries == 3
        assert settings.sensor.retry_delay_sec == 1.5
        assert settings.sensor.interval_sec == 15.0
        assert settings.sensor.mock is True
        assert settings.sensor.mock_failure_rate == 0.25
        assert settings.server.host == "127.0.0.1"
        assert settings.server.port == 9100
        assert settings.server.shutdown_grace_sec == 5.0
        assert settings.metrics.namespace == "dht"
        assert settings.metrics.enable_vpd is False
        assert settings.metrics.include_process_metrics is False
        assert settings.metrics.stale_after_sec == 120.0

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("SENSOR_PIN", "17")
        monkeypatch.setenv("SENSOR_MAX_RETRIES", "8")

        settings = load_settings(["--sensor-pin", "22"])

        assert settings.sensor.pin == 22
        assert settings.sensor.max_retries == 8

    def test_verbosity(self):
        assert load_settings(["-v"]).log_level == logging.DEBUG
        assert load_settings(["-v"]).server.access_log is False
        assert load_settings(["-vv"]).server.access_log is True

    @pytest.mark.parametrize(
        "argv",
        [
            ["--sensor-type", "9"],
            ["--sensor-type", "dht22"],
            ["--sensor-pin", "40"],
            ["--interval", "soon"],
            ["--listen-addr", "2112"],
            ["--unknown-flag"],
        ],
    )
    def test_invalid_flags_raise_config_error(self, argv):
        with pytest.raises(ConfigError):
            load_settings(argv)
