"""Signal wiring for long running services."""

import asyncio
import signal
from collections.abc import Callable

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop, on_signal: Callable[[str], None]
) -> None:
    """Route SIGINT/SIGTERM to ``on_signal`` with the signal name."""
    for sig in HANDLED_SIGNALS:
        loop.add_signal_handler(sig, on_signal, sig.name)


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Restore the default handling of SIGINT/SIGTERM."""
    for sig in HANDLED_SIGNALS:
        loop.remove_signal_handler(sig)
