"""
Session Terminator contract and the guard that makes termination idempotent.

Two clocks can end an idle cycle (the scheduler's hard timeout and the
warning countdown). The guard lets the first one through and absorbs the
rest, keyed on (session id, epoch).
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Set, Tuple

from ..logger import get_logger

log = get_logger()


class TerminationReason(str, Enum):
    IDLE_TIMEOUT = "idle_timeout"
    COUNTDOWN_EXPIRED = "countdown_expired"
    USER_LOGOUT = "user_logout"


# (session_id, reason) -> None; invalidates the session and sends the user
# back to an unauthenticated page.
Terminator = Callable[[str, TerminationReason], None]


class TerminationGuard:

    def __init__(self, terminator: Terminator):
        self._terminator = terminator
        self._fired: Set[Tuple[str, int]] = set()

    def has_fired(self, session_id: str, epoch: int) -> bool:
        return (session_id, epoch) in self._fired

    def terminate(self, session_id: str, epoch: int, reason: TerminationReason) -> bool:
        """Invoke the terminator unless this (session, epoch) already ended."""
        key = (session_id, epoch)
        if key in self._fired:
            log.debug("Absorbed duplicate termination for {} ({})", session_id, reason.value)
            return False
        self._fired.add(key)
        log.info("Terminating session {}: {}", session_id, reason.value)
        self._terminator(session_id, reason)
        return True

    def forget(self, session_id: str) -> None:
        """Drop bookkeeping for a session the host no longer tracks."""
        self._fired = {k for k in self._fired if k[0] != session_id}
