"""uvicorn integration for the metrics server."""

import asyncio
import contextlib
import socket
from collections.abc import Callable, Generator

import uvicorn

from dht_exporter.lib.exceptions import ServerStartError


class GracefulServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the caller.

    Shutdown is requested by setting ``should_exit``; uvicorn then stops
    accepting connections and waits up to ``timeout_graceful_shutdown`` for
    in-flight requests before cancelling them.
    """

    def __init__(
        self,
        config: uvicorn.Config,
        *,
        on_started: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(config)
        self._on_started = on_started
        # Set once startup() returns, whether or not it succeeded
        self.startup_done = asyncio.Event()

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        try:
            await super().startup(sockets=sockets)
        finally:
            self.startup_done.set()
        if self.started and self._on_started is not None:
            self._on_started()


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind the listen socket.

    Raises:
        ServerStartError: If the address cannot be bound.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        raise ServerStartError(f"Could not bind to {host}:{port}: {e}") from e
    return sock
