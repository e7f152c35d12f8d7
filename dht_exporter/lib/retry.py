"""Retry utilities with a bounded attempt budget."""
import asyncio
from collections.abc import Callable
from concurrent.futures import Executor
from dataclasses import dataclass
from logging import Logger

from dht_exporter.lib.clock import Clock, SystemClock
from dht_exporter.lib.exceptions import RetryExhaustedError


@dataclass(frozen=True, slots=True)
class RetryResult[T]:
    value: T
    retries: int


async def with_retry[T](
    fn: Callable[[], T],
    *,
    name: str,
    logger: Logger,
    max_attempts: int = 5,
    backoff_sec: float = 2.0,
    retryable_exceptions: tuple[type[Exception], ...] = (RuntimeError,),
    run_in_thread: bool = True,
    executor: Executor | None = None,
    clock: Clock | None = None,
) -> RetryResult[T]:
    """Execute a blocking function with retry logic and a fixed backoff.

    Args:
        fn: The function to execute.
        name: Name for logging purposes.
        logger: Logger instance to use.
        max_attempts: Maximum number of attempts (at least one is made).
        backoff_sec: Delay between two attempts, in seconds.
        retryable_exceptions: Exception types that trigger a retry. Anything
            else propagates immediately.
        run_in_thread: If True, run fn in a worker thread.
        executor: Executor for the worker thread; the default pool if None.
        clock: Clock used for the backoff sleeps.

    Returns:
        The value returned by fn and the number of failed attempts before it.

    Raises:
        RetryExhaustedError: If every attempt raised a retryable exception.
    """
    clock = clock or SystemClock()
    loop = asyncio.get_running_loop()
    attempts = max(1, max_attempts)
    last_error: Exception | None = None

    for attempt in range(attempts):
        try:
            if run_in_thread:
                value = await loop.run_in_executor(executor, fn)
            else:
                value = fn()
            return RetryResult(value=value, retries=attempt)
        except retryable_exceptions as e:
            last_error = e
            if attempt + 1 == attempts:
                break
            logger.debug(
                "%s attempt %d/%d failed: %s. Retrying in %.1fs...",
                name,
                attempt + 1,
                attempts,
                e,
                backoff_sec,
            )
            await clock.sleep(backoff_sec)

    raise RetryExhaustedError(name, attempts, last_error)
