"""Application factory for the metrics server."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from prometheus_client.registry import CollectorRegistry
from starlette.applications import Starlette
from starlette.routing import Route

from dht_exporter.lib.gauges import GaugeState
from dht_exporter.lib.lifecycle import Lifecycle
from dht_exporter.lib.polling import PollingService
from dht_exporter.logging import get_logger

from .api.health import health_check
from .api.metrics import metrics

_logger = get_logger("server")


def create_app(
    gauges: GaugeState,
    registry: CollectorRegistry,
    *,
    lifecycle: Lifecycle,
    sampler: PollingService | None = None,
    stale_after_sec: float = 60.0,
) -> Starlette:
    """Create and configure the Starlette application.

    The sampler, when given, runs as a background task for the lifetime of
    the application and is cancelled once the server has drained.

    Returns:
        Configured Starlette application instance.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        """Application lifespan manager for startup/shutdown tasks."""
        if sampler is None:
            yield
            return

        sampler_task = asyncio.create_task(sampler.run(), name="sampler")
        _logger.info("Sampler started")
        try:
            yield
        finally:
            sampler.stop()
            sampler_task.cancel()
            try:
                await sampler_task
            except asyncio.CancelledError:
                pass
            _logger.info("Sampler stopped")

    routes = [
        Route("/metrics", metrics),
        Route("/health", health_check),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.gauges = gauges
    app.state.registry = registry
    app.state.lifecycle = lifecycle
    app.state.stale_after_sec = stale_after_sec
    return app
