"""Cancelable periodic tick sources used to drive session countdowns."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    def schedule_repeating(self, interval_seconds: float, callback: Callable[[], None]) -> TickHandle: ...


class RepeatingTicker(Thread):
    """Daemon thread invoking a callback every interval until cancelled."""

    def __init__(self, interval_seconds: float, callback: Callable[[], None]) -> None:
        super().__init__(name="QuizCountdown", daemon=True)
        self._interval = interval_seconds
        self._callback = callback
        self._stopped = Event()

    def run(self) -> None:
        while not self._stopped.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Countdown callback failed; stopping ticker.")
                self._stopped.set()

    def cancel(self) -> None:
        self._stopped.set()

    def is_cancelled(self) -> bool:
        return self._stopped.is_set()


class ThreadTickScheduler:
    """Default scheduler: one background ticker thread per registration."""

    def schedule_repeating(self, interval_seconds: float, callback: Callable[[], None]) -> RepeatingTicker:
        ticker = RepeatingTicker(interval_seconds, callback)
        ticker.start()
        return ticker
