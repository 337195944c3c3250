"""
Idle Scheduler — owns the idle clock for one session.

Converts a SessionTimeoutPolicy plus a stream of activity signals into two
deadlines (warning, hard timeout) and fires the host's callbacks when they
are reached.

    ACTIVE  --warning delay elapsed-->  WARNING
    WARNING --reset()-->                ACTIVE
    ACTIVE/WARNING --hard timeout-->    EXPIRED   (on_timeout)
    any     --teardown()-->             STOPPED   (no callback)

Every reset()/teardown() bumps an epoch token. Each scheduled timer closes
over the epoch it was armed in and does nothing if the token has moved on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..logger import get_logger
from ..policy import SessionTimeoutPolicy
from ..telemetry.signals import EventKind, NullSignalSource, SignalEvent, SignalHandler, SignalSource
from .timers import TimerHandle, TimerHost

log = get_logger()

# Activity within this window of the last recorded activity still resets
# while a warning is up.
ACTIVITY_GRACE_SECONDS = 1.0


class SessionState(str, Enum):
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"
    STOPPED = "stopped"


_TERMINAL = (SessionState.EXPIRED, SessionState.STOPPED)


@dataclass
class ActivityRecord:
    last_activity: float
    warning_acknowledged: bool = False


class IdleScheduler:
    """
    Usage:
        with IdleScheduler(policy, on_warning, on_timeout, timers=host, signals=bus) as sched:
            ...
        # teardown() has run, whatever happened inside the block
    """

    def __init__(
        self,
        policy: SessionTimeoutPolicy,
        on_warning: Optional[Callable[[int], None]],
        on_timeout: Callable[[], None],
        *,
        timers: TimerHost,
        signals: Optional[SignalSource] = None,
        on_reset: Optional[Callable[[], None]] = None,
    ):
        self.policy = policy
        self._on_warning = on_warning
        self._on_timeout = on_timeout
        self._on_reset = on_reset
        self._timers = timers
        self._signals: SignalSource = signals if signals is not None else NullSignalSource()

        self._epoch = 0
        self._state = SessionState.ACTIVE
        self._started = False
        self._record = ActivityRecord(last_activity=0.0)   # re-based in start()
        self._warning_handle: Optional[TimerHandle] = None
        self._timeout_handle: Optional[TimerHandle] = None
        self._subscriptions: List[Tuple[EventKind, SignalHandler]] = []

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def started(self) -> bool:
        return self._started

    @property
    def is_terminal(self) -> bool:
        return self._state in _TERMINAL

    @property
    def warning_acknowledged(self) -> bool:
        return self._record.warning_acknowledged

    @property
    def visibility_resync(self) -> bool:
        """False when the host cannot report foreground changes."""
        return any(kind is EventKind.VISIBILITY for kind, _ in self._subscriptions)

    def time_since_last_activity(self) -> float:
        """Seconds since the last accepted activity. Diagnostics only."""
        return self._timers.now() - self._record.last_activity

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "IdleScheduler":
        if self._started:
            raise RuntimeError("IdleScheduler already started")
        self._started = True
        self._subscribe()
        self._record = ActivityRecord(last_activity=self._timers.now())
        self._arm()
        log.debug(
            "Idle scheduler started: timeout={}s warning_lead={}s",
            self.policy.total_idle_timeout, self.policy.warning_lead_time,
        )
        return self

    def reset(self) -> None:
        """Re-base both deadlines on now. No-op once expired or torn down."""
        if self.is_terminal or not self._started:
            return
        self._cancel_timers()
        self._epoch += 1
        self._record = ActivityRecord(last_activity=self._timers.now())
        previous = self._state
        self._state = SessionState.ACTIVE
        self._arm()
        if previous is SessionState.WARNING:
            log.info("Session activity resumed; warning cleared (epoch {})", self._epoch)
        if self._on_reset is not None:
            self._on_reset()

    def teardown(self) -> None:
        """Cancel everything. No callback fires afterwards."""
        if self._state is SessionState.STOPPED:
            return
        self._release()
        self._epoch += 1
        if self._state is not SessionState.EXPIRED:
            self._state = SessionState.STOPPED
            log.debug("Idle scheduler torn down (epoch {})", self._epoch)

    def expire(self) -> None:
        """Enter EXPIRED without calling on_timeout (another clock got there first)."""
        if self.is_terminal:
            return
        self._release()
        self._state = SessionState.EXPIRED
        log.info("Session expired by countdown (epoch {})", self._epoch)

    def __enter__(self) -> "IdleScheduler":
        if not self._started:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # ------------------------------------------------------------------
    # Signal handlers
    # ------------------------------------------------------------------

    def handle_activity(self, event: Optional[SignalEvent] = None) -> bool:
        """Throttled activity entry point. Returns True if the clock was reset."""
        if self.is_terminal or not self._started:
            return False
        if event is not None and event.kind not in self.policy.activity_signals:
            return False
        elapsed = self.time_since_last_activity()
        if self._record.warning_acknowledged and elapsed >= ACTIVITY_GRACE_SECONDS:
            # a warning is up: only an explicit continue re-arms
            return False
        self.reset()
        return True

    def handle_visibility(self, visible: bool) -> bool:
        """Foreground regain resync. Returns True if the clock was reset."""
        if not visible or self.is_terminal or not self._started:
            return False
        if self.time_since_last_activity() < self.policy.warning_delay:
            self.reset()
            return True
        # overdue: leave the timers alone so the pending fire happens promptly
        log.debug(
            "Foreground regained after {:.1f}s idle; leaving deadlines in place",
            self.time_since_last_activity(),
        )
        return False

    def _on_signal(self, event: SignalEvent) -> None:
        self.handle_activity(event)

    def _on_visibility_signal(self, event: SignalEvent) -> None:
        self.handle_visibility(bool(event.visible))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _subscribe(self) -> None:
        for kind in sorted(self.policy.activity_signals, key=lambda k: k.value):
            if self._signals.subscribe(kind, self._on_signal):
                self._subscriptions.append((kind, self._on_signal))
            else:
                log.debug("Signal source does not provide {}; ignoring", kind.value)
        if self._signals.subscribe(EventKind.VISIBILITY, self._on_visibility_signal):
            self._subscriptions.append((EventKind.VISIBILITY, self._on_visibility_signal))
        else:
            log.warning("Host has no visibility events; wake-from-background resync disabled")

    def _unsubscribe(self) -> None:
        for kind, handler in self._subscriptions:
            self._signals.unsubscribe(kind, handler)
        self._subscriptions.clear()

    def _arm(self) -> None:
        epoch = self._epoch
        if self._on_warning is not None:
            self._warning_handle = self._timers.call_later(
                self.policy.warning_delay, lambda: self._fire_warning(epoch)
            )
        self._timeout_handle = self._timers.call_later(
            self.policy.total_idle_timeout, lambda: self._fire_timeout(epoch)
        )

    def _cancel_timers(self) -> None:
        for handle in (self._warning_handle, self._timeout_handle):
            if handle is not None:
                handle.cancel()
        self._warning_handle = None
        self._timeout_handle = None

    def _release(self) -> None:
        self._cancel_timers()
        self._unsubscribe()

    def _fire_warning(self, epoch: int) -> None:
        if epoch != self._epoch or self._state is not SessionState.ACTIVE:
            log.debug("Discarding stale warning fire (epoch {} != {})", epoch, self._epoch)
            return
        self._warning_handle = None
        self._record.warning_acknowledged = True
        self._state = SessionState.WARNING
        seconds_left = self.policy.warning_seconds
        log.info("Idle warning: {}s until session timeout (epoch {})", seconds_left, epoch)
        self._on_warning(seconds_left)

    def _fire_timeout(self, epoch: int) -> None:
        if epoch != self._epoch or self.is_terminal:
            log.debug("Discarding stale timeout fire (epoch {} != {})", epoch, self._epoch)
            return
        self._timeout_handle = None
        self._release()
        self._state = SessionState.EXPIRED
        log.info("Session idle timeout reached (epoch {})", epoch)
        self._on_timeout()


def initialize(
    policy: SessionTimeoutPolicy,
    on_warning: Optional[Callable[[int], None]],
    on_timeout: Callable[[], None],
    *,
    timers: TimerHost,
    signals: Optional[SignalSource] = None,
) -> IdleScheduler:
    """Build a scheduler and arm both deadlines from now."""
    return IdleScheduler(policy, on_warning, on_timeout, timers=timers, signals=signals).start()
