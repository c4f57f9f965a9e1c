"""
Recurring-timer lifecycle shared by the simulation, comms log and radar sweep.

Timers follow matplotlib's timer protocol: a factory called as
`factory(interval=ms)` (e.g. `fig.canvas.new_timer`) returns an object with
add_callback / remove_callback / start / stop.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

logger = logging.getLogger(__name__)

TimerFactory = Callable[..., Any]


class TimerDriver:
    """Runs `callback` every `interval_ms`; exceptions are logged and the timer keeps going."""

    def __init__(self, name: str, interval_ms: int, callback: Callable[[], Any]):
        self.name = name
        self.interval_ms = int(interval_ms)
        self._callback = callback
        self._timer: Optional[Any] = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._timer is not None

    def _fire(self) -> None:
        try:
            self._callback()
        except Exception:
            self.failures += 1
            logger.exception("%s tick failed (%d so far)", self.name, self.failures)
        # matplotlib drops a callback that returns 0; always return None

    def start(self, factory: TimerFactory) -> None:
        if self._timer is not None:
            logger.debug("%s already running", self.name)
            return
        timer = factory(interval=self.interval_ms)
        timer.add_callback(self._fire)
        timer.start()
        self._timer = timer
        logger.info("%s started (every %d ms)", self.name, self.interval_ms)

    def stop(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.stop()
        try:
            timer.remove_callback(self._fire)
        except ValueError:
            pass
        logger.info("%s stopped", self.name)

    @contextmanager
    def running_with(self, factory: TimerFactory) -> Iterator["TimerDriver"]:
        self.start(factory)
        try:
            yield self
        finally:
            self.stop()
