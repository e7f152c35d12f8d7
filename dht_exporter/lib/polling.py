"""Fixed-interval sampling loop.

Subclasses implement one round as poll → audit → persist; the loop keeps
rounds on a steady cadence through an injectable clock and survives errors
raised by any of the three steps.
"""
from abc import ABC, abstractmethod

from dht_exporter.lib.clock import Clock, SystemClock
from dht_exporter.logging import get_logger


class PollingService[T](ABC):
    """Base class for a sensor sampled once per ``frequency_sec``.

    The loop ends after the current round once stop() is called, or at the
    next await point when its task is cancelled.
    """

    def __init__(
        self,
        name: str,
        frequency_sec: float,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the polling service.

        Args:
            name: Service name for logging.
            frequency_sec: Polling frequency in seconds.
            clock: Time source for the loop timing.
        """
        self.name = name
        self.frequency_sec = frequency_sec
        self.clock = clock or SystemClock()
        self.rounds = 0
        self._stop_requested = False
        self._logger = get_logger(f"polling.{name}")

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the sensor; called once before the first round."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Release the sensor once the loop exits, cancellation included."""

    @abstractmethod
    async def poll(self) -> T | None:
        """Poll the sensor for a new reading.

        Returns:
            A reading object, or None if the reading should be skipped.
        """

    @abstractmethod
    async def audit(self, reading: T) -> bool:
        """Audit the reading.

        Args:
            reading: The sensor reading to audit.

        Returns:
            True if the reading is valid and should be persisted, False to skip.
        """

    @abstractmethod
    async def persist(self, reading: T) -> None:
        """Persist the reading.

        Args:
            reading: The validated reading to persist.
        """

    def on_poll_error(self, error: Exception) -> None:
        """Handle an error that occurred during polling.

        Override to customize error handling. Default logs the error.
        """
        self._logger.exception("%s poll error: %s", self.name, error)

    def stop(self) -> None:
        """Ask the loop to exit after the current round."""
        self._stop_requested = True

    @property
    def stopped(self) -> bool:
        return self._stop_requested

    async def _poll_cycle(self) -> None:
        """Execute a single poll → audit → persist cycle."""
        reading = await self.poll()
        if reading is not None:
            if await self.audit(reading):
                await self.persist(reading)

    async def run(self) -> None:
        """Run the polling loop until stop() is called or the task is cancelled.

        1. Calls initialize()
        2. Enters the polling loop (poll → audit → persist)
        3. Calls cleanup() on exit
        """
        await self.initialize()
        self._logger.info(
            "%s polling service started, every %.1fs", self.name, self.frequency_sec
        )

        try:
            while not self._stop_requested:
                cycle_start = self.clock.monotonic()

                try:
                    await self._poll_cycle()
                except Exception as e:
                    self.on_poll_error(e)
                self.rounds += 1

                if self._stop_requested:
                    break

                # Sleep only the remaining time to maintain consistent intervals
                elapsed = self.clock.monotonic() - cycle_start
                sleep_time = max(0, self.frequency_sec - elapsed)
                if sleep_time > 0:
                    await self.clock.sleep(sleep_time)
        finally:
            self._logger.info("Cleaning up resources...")
            await self.cleanup()
            self._logger.info("%s polling stopped", self.name)
