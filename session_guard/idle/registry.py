"""
Session Registry — the host-side owner of every live supervisor.

Each session gets its own SignalBus and SessionSupervisor. The registry's
terminator is the Session Terminator for the HTTP host: it invalidates the
session so later requests get bounced to the login boundary.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..logger import get_logger
from ..policy import SessionTimeoutPolicy
from ..telemetry.signals import SignalBus, SignalEvent
from .supervisor import SessionSupervisor
from .terminator import TerminationGuard, TerminationReason
from .timers import TimerHost

log = get_logger()


class SessionExpired(Exception):
    """Raised when a host acts on a session that has already been terminated."""


@dataclass
class SessionEntry:
    supervisor: SessionSupervisor
    bus: SignalBus
    created_at: float
    warnings: int = 0
    invalidated: bool = False

    def snapshot(self) -> dict:
        snap = self.supervisor.snapshot()
        snap["warnings"] = self.warnings
        snap["invalidated"] = self.invalidated
        snap["timeout_seconds"] = self.supervisor.policy.total_idle_timeout
        snap["warning_lead_seconds"] = self.supervisor.policy.warning_lead_time
        return snap


class SessionRegistry:

    def __init__(
        self,
        timers: TimerHost,
        default_policy: SessionTimeoutPolicy,
        countdown_interval: float = 1.0,
    ):
        self._timers = timers
        self.default_policy = default_policy
        self._countdown_interval = countdown_interval
        self._sessions: Dict[str, SessionEntry] = {}
        self._guard = TerminationGuard(self._terminate)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create(self, policy: Optional[SessionTimeoutPolicy] = None) -> SessionEntry:
        session_id = uuid.uuid4().hex
        bus = SignalBus()
        supervisor = SessionSupervisor(
            policy or self.default_policy,
            self._guard,
            timers=self._timers,
            signals=bus,
            session_id=session_id,
            on_warning=lambda _seconds: self._on_warning(session_id),
            countdown_interval=self._countdown_interval,
        )
        entry = SessionEntry(supervisor=supervisor, bus=bus, created_at=self._timers.now())
        self._sessions[supervisor.session_id] = entry
        supervisor.start()
        return entry

    def get(self, session_id: str) -> SessionEntry:
        return self._sessions[session_id]

    def all(self) -> List[SessionEntry]:
        return list(self._sessions.values())

    def remove(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry.supervisor.teardown()
        self._guard.forget(session_id)
        return True

    def shutdown(self) -> None:
        for entry in self._sessions.values():
            entry.supervisor.teardown()
        self._sessions.clear()

    # ------------------------------------------------------------------
    # Host actions
    # ------------------------------------------------------------------

    def publish(self, session_id: str, event: SignalEvent) -> bool:
        """Feed a signal into the session; True if it reset the idle clock."""
        entry = self._live(session_id)
        epoch = entry.supervisor.scheduler.epoch
        entry.bus.publish(event)
        return entry.supervisor.scheduler.epoch != epoch

    def continue_session(self, session_id: str) -> SessionEntry:
        entry = self._live(session_id)
        entry.supervisor.continue_session()
        return entry

    def logout(self, session_id: str) -> SessionEntry:
        entry = self._live(session_id)
        entry.supervisor.force_logout()
        return entry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _live(self, session_id: str) -> SessionEntry:
        entry = self._sessions[session_id]
        if entry.invalidated:
            raise SessionExpired(session_id)
        return entry

    def _on_warning(self, session_id: str) -> None:
        entry = self._sessions.get(session_id)
        if entry is not None:
            entry.warnings += 1

    def _terminate(self, session_id: str, reason: TerminationReason) -> None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return
        entry.invalidated = True
        entry.supervisor.teardown()
        log.info("Session {} invalidated ({})", session_id, reason.value)
