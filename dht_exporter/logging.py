"""Logging configuration for the DHT exporter."""

import logging
import sys

_configured = False

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"


def configure(level: int = logging.INFO, *, access_log: bool = False) -> None:
    """Configure logging for the application.

    Safe to call multiple times - only configures once.

    Args:
        level: Level of the ``dht_exporter`` logger namespace.
        access_log: Whether uvicorn request logs should be emitted.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("dht_exporter")
    root.setLevel(level)
    root.addHandler(handler)

    # Route uvicorn through the same handler
    # (child loggers like uvicorn.error propagate to this)
    uv_log = logging.getLogger("uvicorn")
    uv_log.handlers.clear()
    uv_log.addHandler(handler)
    uv_log.setLevel(logging.INFO)

    # Scrapes arrive every few seconds, keep them out of the logs by default
    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if access_log else logging.WARNING
    )

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the 'dht_exporter' namespace.

    Args:
        name: Logger name (will be prefixed with 'dht_exporter.')

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(f"dht_exporter.{name}")
