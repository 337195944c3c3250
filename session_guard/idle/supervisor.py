"""
Session Supervisor — wires the idle scheduler, the warning countdown and the
terminator together for one session.

The scheduler and the countdown never share a counter. They only meet at
the termination guard, which lets exactly one of them end the session.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Dict, Optional, Union

from ..logger import get_logger
from ..policy import SessionTimeoutPolicy
from ..telemetry.signals import EventKind, SignalEvent, SignalSource
from .countdown import WarningCountdown
from .scheduler import IdleScheduler, SessionState
from .terminator import TerminationGuard, TerminationReason, Terminator
from .timers import TimerHost

log = get_logger()


class SessionSupervisor:
    """
    Usage:
        with SessionSupervisor(policy, logout, timers=AsyncioTimerHost(), signals=bus) as sup:
            ...
            sup.continue_session()   # "Continue Session" button
    """

    def __init__(
        self,
        policy: SessionTimeoutPolicy,
        terminator: Union[Terminator, TerminationGuard],
        *,
        timers: TimerHost,
        signals: Optional[SignalSource] = None,
        session_id: Optional[str] = None,
        on_warning: Optional[Callable[[int], None]] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        countdown_interval: float = 1.0,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.policy = policy
        self._guard = terminator if isinstance(terminator, TerminationGuard) else TerminationGuard(terminator)
        self._timers = timers
        self._host_on_warning = on_warning
        self._host_on_tick = on_tick
        self._countdown_interval = countdown_interval
        self._countdown: Optional[WarningCountdown] = None
        self.termination_reason: Optional[TerminationReason] = None

        self._scheduler = IdleScheduler(
            policy,
            self._handle_warning,
            self._handle_timeout,
            timers=timers,
            signals=signals,
            on_reset=self._dismiss_countdown,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "SessionSupervisor":
        self._scheduler.start()
        log.info("Supervising session {}", self.session_id)
        return self

    def teardown(self) -> None:
        self._dismiss_countdown()
        self._scheduler.teardown()

    def __enter__(self) -> "SessionSupervisor":
        if not self._scheduler.started:
            self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._scheduler.state

    @property
    def scheduler(self) -> IdleScheduler:
        return self._scheduler

    @property
    def countdown(self) -> Optional[WarningCountdown]:
        return self._countdown

    def time_since_last_activity(self) -> float:
        return self._scheduler.time_since_last_activity()

    def snapshot(self) -> Dict[str, Any]:
        countdown = self._countdown
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "epoch": self._scheduler.epoch,
            "seconds_since_activity": self.time_since_last_activity(),
            "seconds_remaining": countdown.seconds_remaining if countdown else None,
            "display": countdown.display() if countdown else None,
            "termination_reason": self.termination_reason.value if self.termination_reason else None,
        }

    # ------------------------------------------------------------------
    # Host controls
    # ------------------------------------------------------------------

    def record_activity(self, kind: EventKind) -> bool:
        return self._scheduler.handle_activity(SignalEvent(kind=kind))

    def set_visible(self, visible: bool) -> bool:
        return self._scheduler.handle_visibility(visible)

    def continue_session(self) -> bool:
        """Explicit "stay signed in". Always re-arms a live session."""
        if self._scheduler.is_terminal:
            return False
        if self._countdown is not None:
            self._countdown.continue_session()
        else:
            self._scheduler.reset()
        return True

    def force_logout(self) -> bool:
        """User-initiated early termination."""
        if self._scheduler.is_terminal:
            return False
        return self._expire(self._scheduler.epoch, TerminationReason.USER_LOGOUT)

    # ------------------------------------------------------------------
    # Scheduler / countdown callbacks
    # ------------------------------------------------------------------

    def _handle_warning(self, seconds_left: int) -> None:
        epoch = self._scheduler.epoch
        self._dismiss_countdown()
        self._countdown = WarningCountdown(
            seconds_left,
            lambda: self._countdown_expired(epoch),
            timers=self._timers,
            on_continue=self._scheduler.reset,
            on_tick=self._host_on_tick,
            interval=self._countdown_interval,
        )
        self._countdown.start()
        # a zero-second countdown may already have ended the session
        if self._host_on_warning is not None and not self._scheduler.is_terminal:
            self._host_on_warning(seconds_left)

    def _handle_timeout(self) -> None:
        self._expire(self._scheduler.epoch, TerminationReason.IDLE_TIMEOUT)

    def _countdown_expired(self, epoch: int) -> None:
        if epoch != self._scheduler.epoch:
            log.debug("Ignoring countdown expiry from epoch {}", epoch)
            return
        self._expire(epoch, TerminationReason.COUNTDOWN_EXPIRED)

    def _expire(self, epoch: int, reason: TerminationReason) -> bool:
        if self._guard.has_fired(self.session_id, epoch):
            log.debug("Session {} already terminated for epoch {}", self.session_id, epoch)
            return False
        self._dismiss_countdown()
        self._scheduler.expire()
        self.termination_reason = reason
        return self._guard.terminate(self.session_id, epoch, reason)

    def _dismiss_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.dismiss()
            self._countdown = None
