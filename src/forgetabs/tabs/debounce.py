"""Single-slot debounce timer."""

from __future__ import annotations

import logging as py_logging
import threading
from collections.abc import Callable
from functools import partial
from typing import Generic, Protocol, TypeVar

logger = py_logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def _thread_timer(delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    return timer


class Debouncer(Generic[T]):
    """Coalesce bursts of ``schedule`` calls into one delayed action.

    Only one timer is ever pending. Scheduling again replaces the pending
    payload and restarts the quiet period; a superseded payload is dropped.
    """

    def __init__(
        self,
        delay_seconds: float,
        action: Callable[[T], None],
        *,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        if delay_seconds < 0:
            raise ValueError(f"Invalid debounce delay: {delay_seconds}")
        self.delay_seconds = delay_seconds
        self._action = action
        self._timer_factory = timer_factory or _thread_timer
        self._lock = threading.Lock()
        self._timer: TimerHandle | None = None
        self._payload: T | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self, payload: T) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._payload = payload
            self._timer = self._timer_factory(self.delay_seconds, partial(self._fire, self._generation))
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._drop_pending()

    def flush(self) -> bool:
        """Run the pending action now. Returns False when nothing was pending."""
        with self._lock:
            if self._timer is None:
                return False
            payload = self._payload
            self._drop_pending()
        self._action(payload)  # type: ignore[arg-type]
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                logger.debug("Discarding superseded debounce generation=%s", generation)
                return
            payload = self._payload
            self._timer = None
            self._payload = None
        self._action(payload)  # type: ignore[arg-type]

    def _drop_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._payload = None
        self._generation += 1
