"""Cancellable periodic tickers driving the round timers.

The engine never sleeps or reads wall-clock time on its own; it asks a
``Ticker`` for a periodic callback and cancels the returned handle when the
phase changes. ``ThreadingTicker`` is the production implementation; tests
inject a manual ticker that fires ticks on demand.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol

_logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickerHandle(Protocol):
    """A running periodic timer."""

    @property
    def active(self) -> bool: ...

    def cancel(self) -> bool: ...


class Ticker(Protocol):
    """Factory for periodic timers."""

    def start(self, interval: float, callback: TickCallback) -> TickerHandle: ...


class ThreadingTickerHandle:
    """Periodic timer built from re-armed daemon ``threading.Timer`` objects.

    Thread-safe handle that:
    - Fires ``callback`` every ``interval`` seconds until cancelled
    - Never re-arms after ``cancel``
    - Logs and swallows errors raised by the callback so the ticker survives
    """

    def __init__(
        self,
        interval: float,
        callback: TickCallback,
        logger: Optional[Any] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("ticker interval must be positive")
        self._interval = interval
        self._callback = callback
        self._logger = logger or _logger

        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False
        self._ticks = 0

    @property
    def active(self) -> bool:
        with self._lock:
            return not self._cancelled

    @property
    def ticks(self) -> int:
        return self._ticks

    def start(self) -> ThreadingTickerHandle:
        self._arm()
        return self

    def cancel(self) -> bool:
        """Stop the ticker.

        Returns:
            True if the ticker was running, False if already cancelled
        """
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
            timer = self._timer
            self._timer = None
        if timer:
            timer.cancel()
        self._logger.debug(f"Ticker cancelled after {self._ticks} ticks")
        return True

    def _arm(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            timer = threading.Timer(self._interval, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._ticks += 1

        try:
            self._callback()
        except Exception as e:
            self._logger.error(f"Error in ticker callback: {e}")

        self._arm()


class ThreadingTicker:
    """``Ticker`` backed by ``threading.Timer``."""

    def __init__(self, logger: Optional[Any] = None) -> None:
        self._logger = logger or _logger

    def start(self, interval: float, callback: TickCallback) -> ThreadingTickerHandle:
        return ThreadingTickerHandle(interval, callback, logger=self._logger).start()
