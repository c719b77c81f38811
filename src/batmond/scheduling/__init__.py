"""Scheduler package for the battery monitor daemon."""

from __future__ import annotations

import logging
import signal
import threading
from types import FrameType
from typing import TYPE_CHECKING, Any, Final

from batmond.scheduling.models import PollSettings, StopReason

if TYPE_CHECKING:
    from batmond.controller import BatteryDaemon

logger: Final = logging.getLogger(__name__)

STOP_SIGNALS: Final = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT") if hasattr(signal, name)
)


class Scheduler:
    """Drives the daemon's poll cycle on a fixed interval.

    Controls when the application should:
    - Poll the batteries (once immediately, then every tick)
    - Stop on SIGINT/SIGTERM/SIGQUIT or an explicit :meth:`stop`
    - Give up after too many consecutive polls without a battery

    Cycles never overlap: each poll runs to completion before the loop
    waits for the next tick. The stop event doubles as the tick timer,
    so a stop request ends the wait immediately.
    """

    def __init__(
        self,
        daemon: BatteryDaemon,
        polling: PollSettings | None = None,
        stop_event: threading.Event | None = None,
        install_signal_handlers: bool = True,
    ) -> None:
        self.daemon = daemon
        self.polling = polling or daemon.settings.polling
        self.stop_event = stop_event or threading.Event()
        self.install_signal_handlers = install_signal_handlers

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self.stop_event.set()

    def _handle_signal(self, signum: int, _frame: FrameType | None) -> None:
        logger.info("Received %s → stopping", signal.Signals(signum).name)
        self.stop()

    def _install_handlers(self) -> dict[int, Any]:
        """Install stop handlers, returning the ones they replace."""
        if not self.install_signal_handlers:
            return {}
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread → signal handlers skipped")
            return {}
        return {sig: signal.signal(sig, self._handle_signal) for sig in STOP_SIGNALS}

    def run(self, once: bool = False) -> StopReason:
        """Run the poll loop until exit conditions are met.

        Args:
            once: Run a single cycle then return

        Returns:
            Why the loop ended
        """
        empty_streak = 0
        previous_handlers = self._install_handlers()
        logger.info("Battery Monitor running (poll every %.0fs)", self.polling.interval)

        try:
            while not self.stop_event.is_set():
                if self.daemon.poll():
                    empty_streak = 0
                else:
                    empty_streak += 1
                    if empty_streak >= self.polling.max_empty_polls:
                        logger.warning(
                            "%d consecutive polls without a battery → stopping",
                            empty_streak,
                        )
                        return StopReason.NO_POWER_SOURCE

                if once:
                    return StopReason.ONCE

                self.stop_event.wait(self.polling.interval)

            return StopReason.STOPPED
        finally:
            for sig, handler in previous_handlers.items():
                if handler is not None:
                    signal.signal(sig, handler)
            logger.info("Battery Monitor stopped")


__all__ = ["PollSettings", "Scheduler", "StopReason"]
