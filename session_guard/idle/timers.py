"""
Timer hosts — the only place the idle machinery touches a clock.

AsyncioTimerHost runs on a real event loop. ManualTimerHost is a virtual
clock for tests and offline simulation: nothing happens until advance()
is called, and due callbacks then fire in due-time order.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerHost(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimerHost:
    """Deferred callbacks on an asyncio loop (loop.time() is monotonic)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


@dataclass(order=True)
class _ManualTimer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerHost:
    """
    Virtual clock.

    Usage:
        timers = ManualTimerHost()
        timers.call_later(5, fn)
        timers.advance(5)        # fn runs here, with timers.now() == 5
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[_ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._queue, timer)
        return timer

    def pending(self) -> int:
        return sum(1 for t in self._queue if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward by *seconds*; returns the number of callbacks run."""
        return self.advance_to(self._now + seconds)

    def advance_to(self, instant: float) -> int:
        """
        Run every callback due at or before *instant*, including ones
        scheduled by callbacks along the way. A raising callback stops the
        advance at its own due time and the exception reaches the caller.
        """
        fired = 0
        while self._queue and self._queue[0].due <= instant:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, timer.due)
            fired += 1
            timer.callback()
        self._now = max(self._now, instant)
        return fired
