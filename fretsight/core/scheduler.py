"""Periodic tasks with explicit cancellation for the sensor pipelines."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from ..logger import get_logger

logger = get_logger(__name__)


class CancellationToken:
    """Flag shared between a task and whoever may stop it."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; returns True as soon as cancelled."""
        return self._event.wait(timeout)


class MinIntervalGate:
    """Lets a call through at most once per ``min_interval`` seconds."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._last: Optional[float] = None

    def ready(self) -> bool:
        """Return True and start a new interval if enough time has passed."""
        now = self._clock()
        if self._last is not None and now - self._last < self._min_interval:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None


class ScheduledTask:
    """Runs a callback repeatedly on a background thread until cancelled.

    Exceptions raised by the callback are logged and the task keeps running.
    A missed tick is not retried.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        interval: float,
        name: str = "scheduled-task",
    ) -> None:
        """
        Args:
            callback: Function to call on every tick
            interval: Seconds between ticks
            name: Thread name, shows up in logs
        """
        self._callback = callback
        self._interval = interval
        self._name = name
        self._token: Optional[CancellationToken] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> CancellationToken:
        if self.is_running():
            logger.warning(f"Task {self._name} already running")
            return self._token

        self._token = CancellationToken()
        self._thread = threading.Thread(
            target=self._run, args=(self._token,), name=self._name, daemon=True
        )
        self._thread.start()
        logger.debug(f"Task {self._name} started (interval {self._interval * 1000:.0f}ms)")
        return self._token

    def stop(self, timeout: float = 1.0) -> None:
        """Cancel the task and wait for the current tick to finish."""
        if self._token is not None:
            self._token.cancel()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        self._token = None
        logger.debug(f"Task {self._name} stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self, token: CancellationToken) -> None:
        # First tick after one interval
        while not token.wait(self._interval):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Error in task {self._name}: {e}", exc_info=True)
