"""Custom exceptions for the DHT exporter.

Provides a hierarchy of domain-specific exceptions so the entrypoint can tell
fatal start-up problems apart from recoverable sensor failures.
"""


class ExporterError(Exception):
    """Base exception for all application errors."""


class ConfigError(ExporterError):
    """Raised when command line flags or environment settings are invalid."""


class RetryExhaustedError(ExporterError):
    """Raised when an operation kept failing for its whole retry budget."""

    def __init__(
        self, name: str, attempts: int, last_error: Exception | None
    ) -> None:
        super().__init__(
            f"{name} failed after {attempts} attempt(s): {last_error}"
        )
        self.name = name
        self.attempts = attempts
        self.last_error = last_error


class SensorReadError(RetryExhaustedError):
    """Raised when the sensor gave no valid reading within its retry budget."""


class ServerStartError(ExporterError):
    """Raised when the metrics server cannot bind or start serving."""


class ServerShutdownError(ExporterError):
    """Raised when the metrics server did not stop within its grace period."""


class LifecycleError(ExporterError):
    """Raised on an invalid process lifecycle transition."""
