"""
Warning Countdown — the user-facing second-by-second clock shown while a
session warning is up.

It keeps its own interval rather than reading the scheduler's deadline, so
a delayed or throttled hard-timeout timer cannot hold a session open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..logger import get_logger
from .timers import TimerHandle, TimerHost

log = get_logger()


def format_remaining(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


@dataclass
class CountdownState:
    seconds_remaining: int
    initial_seconds: int

    @property
    def progress(self) -> float:
        if self.initial_seconds <= 0:
            return 0.0
        return self.seconds_remaining / self.initial_seconds


class WarningCountdown:

    def __init__(
        self,
        seconds_left: int,
        on_expire: Callable[[], None],
        *,
        timers: TimerHost,
        on_continue: Optional[Callable[[], None]] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        interval: float = 1.0,
    ):
        self._initial = int(seconds_left)
        self._on_expire = on_expire
        self._on_continue = on_continue
        self._on_tick = on_tick
        self._timers = timers
        self._interval = interval
        self._state: Optional[CountdownState] = None
        self._handle: Optional[TimerHandle] = None
        self._expired = False

    @property
    def active(self) -> bool:
        return self._state is not None

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def seconds_remaining(self) -> int:
        return self._state.seconds_remaining if self._state else 0

    @property
    def progress(self) -> float:
        return self._state.progress if self._state else 0.0

    def display(self) -> str:
        return format_remaining(self.seconds_remaining)

    def start(self) -> "WarningCountdown":
        if self._state is not None or self._expired:
            raise RuntimeError("WarningCountdown already started")
        self._state = CountdownState(self._initial, self._initial)
        self._emit(self._initial)
        if self._initial <= 0:
            self._expire()
        else:
            self._schedule()
        return self

    def dismiss(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._state = None

    def continue_session(self) -> None:
        """User chose to stay: dismiss, then hand control back to the scheduler."""
        self.dismiss()
        if self._on_continue is not None:
            self._on_continue()

    def force_logout(self) -> None:
        """User chose to leave now, skipping the rest of the countdown."""
        if self._expired:
            return
        self.dismiss()
        self._expired = True
        self._on_expire()

    # ------------------------------------------------------------------

    def _schedule(self) -> None:
        self._handle = self._timers.call_later(self._interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if self._state is None:
            return
        # ties go to expiry
        if self._state.seconds_remaining <= 1:
            self._state.seconds_remaining = 0
            self._emit(0)
            self._expire()
            return
        self._state.seconds_remaining -= 1
        self._emit(self._state.seconds_remaining)
        self._schedule()

    def _expire(self) -> None:
        if self._expired:
            return
        self._expired = True
        self.dismiss()
        log.info("Warning countdown reached zero")
        self._on_expire()

    def _emit(self, seconds: int) -> None:
        if self._on_tick is not None:
            self._on_tick(seconds)
