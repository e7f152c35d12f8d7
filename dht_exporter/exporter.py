"""DHT Prometheus exporter.

Samples a DHT temperature/humidity sensor in the background and serves the
latest values on ``/metrics``. SIGINT/SIGTERM stop the server gracefully:
new connections are refused, in-flight requests get a grace period, then
the sampler is cancelled and the sensor released.
"""

import asyncio
import socket
import sys
from collections.abc import Sequence

import uvicorn

from dht_exporter.dht.polling import DHTSamplerService
from dht_exporter.dht.sensor import DHTSensor, create_sensor
from dht_exporter.lib.clock import Clock, SystemClock
from dht_exporter.lib.config import Settings, load_settings
from dht_exporter.lib.exceptions import (
    ConfigError,
    ServerShutdownError,
    ServerStartError,
)
from dht_exporter.lib.gauges import GaugeState, build_registry
from dht_exporter.lib.lifecycle import Lifecycle
from dht_exporter.lib.service import install_signal_handlers, remove_signal_handlers
from dht_exporter.logging import configure, get_logger
from dht_exporter.server import create_app
from dht_exporter.server.runner import GracefulServer, bind_socket

logger = get_logger("exporter")

# Extra time on top of the grace period for uvicorn to cancel and close
_SHUTDOWN_MARGIN_SEC = 2.0


class Exporter:
    """Wires the sampler, the gauge state and the metrics server together."""

    def __init__(
        self,
        settings: Settings,
        sensor: DHTSensor,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings
        self.clock = clock or SystemClock()
        self.lifecycle = Lifecycle()
        self.gauges = GaugeState(
            namespace=settings.metrics.namespace, clock=self.clock
        )
        self.registry = build_registry(
            self.gauges,
            include_process_metrics=settings.metrics.include_process_metrics,
        )
        self.sampler = DHTSamplerService(
            sensor,
            self.gauges,
            settings.sensor,
            enable_vpd=settings.metrics.enable_vpd,
            clock=self.clock,
        )
        self.app = create_app(
            self.gauges,
            self.registry,
            lifecycle=self.lifecycle,
            sampler=self.sampler,
            stale_after_sec=settings.metrics.stale_after_sec,
        )

    def _server_config(self) -> uvicorn.Config:
        server = self.settings.server
        return uvicorn.Config(
            self.app,
            lifespan="on",
            log_config=None,
            access_log=server.access_log,
            timeout_graceful_shutdown=server.shutdown_grace_sec,
        )

    async def serve(self, sock: socket.socket) -> None:
        """Serve on an already bound socket until shutdown is requested.

        Raises:
            ServerStartError: If the server exits without ever serving.
            ServerShutdownError: If draining exceeds the grace period.
        """
        server = GracefulServer(
            self._server_config(), on_started=self.lifecycle.mark_running
        )
        serve_task = asyncio.create_task(
            server.serve(sockets=[sock]), name="metrics-server"
        )
        shutdown_task = asyncio.create_task(
            self.lifecycle.wait_for_shutdown(), name="shutdown-watch"
        )

        try:
            done, _ = await asyncio.wait(
                {serve_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if serve_task in done:
                serve_task.result()
                if not server.started:
                    raise ServerStartError("Metrics server failed to start")
                logger.warning("Metrics server exited without a shutdown request")
                return

            grace = self.settings.server.shutdown_grace_sec
            try:
                await asyncio.wait_for(
                    self._drain(server, serve_task),
                    timeout=grace + _SHUTDOWN_MARGIN_SEC,
                )
            except TimeoutError as e:
                raise ServerShutdownError(
                    f"Server did not stop within {grace:.0f}s"
                ) from e
            logger.info("Stopped serving new connections.")
        finally:
            shutdown_task.cancel()
            self.lifecycle.mark_stopped()

    async def _drain(
        self, server: GracefulServer, serve_task: asyncio.Task[None]
    ) -> None:
        """Ask uvicorn to exit and wait until it has.

        uvicorn skips its shutdown sequence, lifespan included, if
        ``should_exit`` is already set when startup returns. A request made
        during startup therefore waits for startup to finish first.
        """
        if not server.startup_done.is_set():
            startup = asyncio.create_task(server.startup_done.wait())
            try:
                await asyncio.wait(
                    {serve_task, startup}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                startup.cancel()
        server.should_exit = True
        await serve_task

    async def run(self) -> None:
        """Bind the listen address, install signal handlers and serve."""
        server = self.settings.server
        try:
            sock = bind_socket(server.host, server.port)
        except ServerStartError:
            await self.sampler.cleanup()
            raise

        loop = asyncio.get_running_loop()
        install_signal_handlers(loop, self.lifecycle.request_shutdown)
        logger.info("Serving metrics on %s:%d/metrics", server.host, server.port)
        try:
            await self.serve(sock)
        finally:
            remove_signal_handlers(loop)
            sock.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    try:
        settings = load_settings(argv)
    except ConfigError as e:
        configure()
        logger.error("Invalid configuration: %s", e)
        return 1

    configure(settings.log_level, access_log=settings.server.access_log)

    try:
        sensor = create_sensor(settings.sensor)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    exporter = Exporter(settings, sensor)
    try:
        asyncio.run(exporter.run())
    except ServerStartError as e:
        logger.critical("HTTP server error: %s", e)
        return 1
    except ServerShutdownError as e:
        logger.critical("HTTP shutdown error: %s", e)
        return 1

    logger.info("Graceful shutdown complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
