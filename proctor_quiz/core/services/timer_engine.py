"""Countdown clock that drives session expiry."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Protocol

from proctor_quiz.constants.quiz_constants import TIME_LIMIT_WARNING_WINDOW_SECONDS, TIMER_TICK_INTERVAL_MS

logger = logging.getLogger(__name__)


class Ticker(Protocol):
    """Schedules a repeating callback on a fixed cadence."""

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def is_running(self) -> bool: ...


class ManualTicker:
    """Ticker driven explicitly by the caller; used by tests and headless hosts."""

    def __init__(self) -> None:
        self._callback: Callable[[], None] | None = None
        self._interval_ms: int | None = None
        self.start_count: int = 0

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None:
        self._interval_ms = interval_ms
        self._callback = callback
        self.start_count += 1

    def stop(self) -> None:
        self._callback = None

    def is_running(self) -> bool:
        return self._callback is not None

    @property
    def interval_ms(self) -> int | None:
        return self._interval_ms

    def advance(self, ticks: int = 1) -> int:
        """Fire up to ``ticks`` callbacks, stopping early if the ticker stops.

        Returns the number of callbacks actually delivered.
        """
        delivered = 0
        for _ in range(ticks):
            callback = self._callback
            if callback is None:
                break
            callback()
            delivered += 1
        return delivered


class CountdownTimer:
    """Counts whole seconds down to zero and signals expiry exactly once."""

    def __init__(
        self,
        ticker: Ticker,
        on_expired: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self._ticker = ticker
        self._on_expired = on_expired
        self._on_tick = on_tick
        self._duration_seconds: int = 0
        self._remaining_seconds: int = 0
        self._started = False
        self._expired = False
        self._cancelled = False

    @property
    def duration_seconds(self) -> int:
        return self._duration_seconds

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def elapsed_seconds(self) -> int:
        return self._duration_seconds - self._remaining_seconds

    @property
    def has_expired(self) -> bool:
        return self._expired

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def is_running(self) -> bool:
        return self._started and not self._expired and not self._cancelled

    def start(self, duration_seconds: int) -> None:
        if duration_seconds < 0:
            raise ValueError("Timer duration must not be negative.")
        if self._started:
            logger.debug("Countdown already started; ignoring second start.")
            return
        self._started = True
        self._duration_seconds = duration_seconds
        self._remaining_seconds = duration_seconds
        if duration_seconds == 0:
            self._expire()
            return
        self._ticker.start(TIMER_TICK_INTERVAL_MS, self._handle_tick)

    def cancel(self) -> bool:
        """Stop ticking. Returns False when the timer was already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True
        self._ticker.stop()
        return True

    def _handle_tick(self) -> None:
        if self._expired or self._cancelled or self._remaining_seconds <= 0:
            return
        self._remaining_seconds -= 1
        if self._on_tick is not None:
            self._on_tick(self._remaining_seconds)
        if self._remaining_seconds == 0:
            self._ticker.stop()
            self._expire()

    def _expire(self) -> None:
        if self._expired:
            return
        self._expired = True
        logger.info("Countdown of %s s expired.", self._duration_seconds)
        self._on_expired()


def is_time_running_out(remaining_seconds: int) -> bool:
    """True once fewer than five minutes remain on the clock."""
    return remaining_seconds < TIME_LIMIT_WARNING_WINDOW_SECONDS
