"""Process lifecycle: starting → running → shutting_down → stopped."""

import asyncio
from enum import StrEnum

from dht_exporter.lib.exceptions import LifecycleError
from dht_exporter.logging import get_logger

logger = get_logger("lib.lifecycle")


class LifecycleState(StrEnum):
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.STARTING: frozenset(
        {LifecycleState.RUNNING, LifecycleState.SHUTTING_DOWN}
    ),
    LifecycleState.RUNNING: frozenset({LifecycleState.SHUTTING_DOWN}),
    LifecycleState.SHUTTING_DOWN: frozenset({LifecycleState.STOPPED}),
    LifecycleState.STOPPED: frozenset(),
}


class Lifecycle:
    """Tracks the process state and carries the shutdown request.

    Signal handlers call ``request_shutdown``; the server runner waits on
    ``wait_for_shutdown`` and never touches OS signals itself.
    """

    def __init__(self) -> None:
        self._state = LifecycleState.STARTING
        self._running = asyncio.Event()
        self._shutdown = asyncio.Event()
        self._stopped = asyncio.Event()
        self.shutdown_reason: str | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def _transition(self, new: LifecycleState) -> None:
        if new not in _TRANSITIONS[self._state]:
            raise LifecycleError(
                f"Invalid lifecycle transition {self._state} -> {new}"
            )
        logger.debug("Lifecycle %s -> %s", self._state, new)
        self._state = new

    def mark_running(self) -> None:
        if self._state is not LifecycleState.STARTING:
            # A shutdown request can race the end of start-up
            return
        self._transition(LifecycleState.RUNNING)
        self._running.set()

    def request_shutdown(self, reason: str = "requested") -> None:
        """Begin the graceful shutdown. Repeated requests are ignored."""
        if self._state in (LifecycleState.SHUTTING_DOWN, LifecycleState.STOPPED):
            logger.info("Received %s, shutdown already in progress", reason)
            return
        logger.info("Received %s, initiating graceful shutdown...", reason)
        self.shutdown_reason = reason
        self._transition(LifecycleState.SHUTTING_DOWN)
        self._shutdown.set()

    def mark_stopped(self) -> None:
        if self._state is LifecycleState.STOPPED:
            return
        if self._state is not LifecycleState.SHUTTING_DOWN:
            self.request_shutdown("server exit")
        self._transition(LifecycleState.STOPPED)
        self._stopped.set()

    async def wait_running(self) -> None:
        await self._running.wait()

    async def wait_for_shutdown(self) -> None:
        await self._shutdown.wait()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()
