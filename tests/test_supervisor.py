"""Tests for the supervisor glue, the termination guard and the two-clock race."""

from __future__ import annotations

import pytest

from session_guard.idle.scheduler import SessionState
from session_guard.idle.supervisor import SessionSupervisor
from session_guard.idle.terminator import TerminationGuard, TerminationReason
from session_guard.policy import SessionTimeoutPolicy
from session_guard.telemetry.signals import EventKind, SignalEvent

MIN = 60


def _supervisor(policy, recorder, timers, bus=None, **kw):
    return SessionSupervisor(
        policy,
        recorder.terminate,
        timers=timers,
        signals=bus,
        session_id="s-1",
        on_warning=recorder.on_warning,
        on_tick=recorder.on_tick,
        **kw,
    ).start()


class TestTerminationGuard:
    def test_second_claim_absorbed(self, recorder):
        guard = TerminationGuard(recorder.terminate)
        assert guard.terminate("a", 3, TerminationReason.IDLE_TIMEOUT) is True
        assert guard.terminate("a", 3, TerminationReason.COUNTDOWN_EXPIRED) is False
        assert recorder.terminations == [("a", TerminationReason.IDLE_TIMEOUT)]

    def test_keyed_on_session_and_epoch(self, recorder):
        guard = TerminationGuard(recorder.terminate)
        guard.terminate("a", 1, TerminationReason.IDLE_TIMEOUT)
        guard.terminate("a", 2, TerminationReason.IDLE_TIMEOUT)
        guard.terminate("b", 1, TerminationReason.IDLE_TIMEOUT)
        assert len(recorder.terminations) == 3

    def test_forget(self, recorder):
        guard = TerminationGuard(recorder.terminate)
        guard.terminate("a", 1, TerminationReason.USER_LOGOUT)
        guard.forget("a")
        assert not guard.has_fired("a", 1)


class TestIdleCycle:
    def test_warning_starts_countdown(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN)
        assert sup.state is SessionState.WARNING
        assert recorder.warnings == [60]
        assert sup.countdown is not None
        assert sup.countdown.seconds_remaining == 60

    def test_exactly_one_termination_when_both_clocks_hit_zero(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(30 * MIN)
        assert recorder.terminations == [("s-1", TerminationReason.IDLE_TIMEOUT)]
        assert sup.state is SessionState.EXPIRED
        timers.advance(60 * MIN)
        assert len(recorder.terminations) == 1
        assert timers.pending() == 0

    def test_countdown_wins_when_hard_timer_is_late(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN)
        # simulate a throttled host: the hard timer has not fired yet
        sup.scheduler._timeout_handle.cancel()
        timers.advance(60)
        assert recorder.terminations == [("s-1", TerminationReason.COUNTDOWN_EXPIRED)]
        assert sup.state is SessionState.EXPIRED

    def test_late_hard_timeout_after_countdown_is_absorbed(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN)
        epoch = sup.scheduler.epoch
        sup._countdown_expired(epoch)
        sup._handle_timeout()
        assert len(recorder.terminations) == 1

    def test_countdown_ticks_reach_host(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN + 10)
        assert recorder.ticks[:11] == list(range(60, 49, -1))
        assert sup.snapshot()["display"] == "0:50"


class TestContinueAndLogout:
    def test_end_to_end_rebase_is_relative(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance_to(29 * MIN)
        assert recorder.warnings == [60]

        timers.advance_to(29 * MIN + 10)
        assert sup.continue_session() is True
        assert sup.state is SessionState.ACTIVE
        assert sup.countdown is None

        timers.advance_to(58 * MIN)
        assert recorder.warnings == [60]
        timers.advance_to(58 * MIN + 10)
        assert recorder.warnings == [60, 60]
        assert recorder.terminations == []

    def test_continue_cancels_pending_timeout(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN + 30)
        sup.continue_session()
        timers.advance(30 * MIN - 1)
        assert recorder.terminations == []
        timers.advance(1)
        assert len(recorder.terminations) == 1

    def test_force_logout_terminates_now(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN + 5)
        assert sup.force_logout() is True
        assert recorder.terminations == [("s-1", TerminationReason.USER_LOGOUT)]
        assert sup.termination_reason is TerminationReason.USER_LOGOUT
        timers.advance(10 * MIN)
        assert len(recorder.terminations) == 1

    def test_controls_after_expiry_refused(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(30 * MIN)
        assert sup.continue_session() is False
        assert sup.force_logout() is False
        assert len(recorder.terminations) == 1

    def test_flood_during_warning_keeps_warning(self, policy, recorder, timers, bus):
        sup = _supervisor(policy, recorder, timers, bus)
        timers.advance(29 * MIN)
        for i in range(50):                     # 5 s of pointer-move at 10 Hz
            bus.publish(SignalEvent(EventKind.POINTER_MOVE))
            timers.advance_to(29 * MIN + (i + 1) / 10)
        assert sup.state is SessionState.WARNING
        assert recorder.warnings == [60]
        assert sup.countdown is not None
        assert sup.countdown.seconds_remaining == 55

    def test_reset_from_grace_activity_dismisses_countdown(self, recorder, timers):
        policy = SessionTimeoutPolicy(total_idle_timeout=3.5, warning_lead_time=3.0)
        sup = _supervisor(policy, recorder, timers)
        timers.advance(0.5)
        assert sup.countdown is not None
        assert sup.record_activity(EventKind.CLICK) is True
        assert sup.countdown is None
        assert sup.state is SessionState.ACTIVE


class TestTeardown:
    def test_teardown_in_warning_silences_both_clocks(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(29 * MIN + 1)
        sup.teardown()
        timers.advance(120 * MIN)
        assert recorder.terminations == []
        assert sup.state is SessionState.STOPPED
        assert timers.pending() == 0

    def test_context_manager(self, policy, recorder, timers):
        with SessionSupervisor(policy, recorder.terminate, timers=timers) as sup:
            timers.advance(10)
        assert sup.state is SessionState.STOPPED
        timers.advance(120 * MIN)
        assert recorder.terminations == []

    def test_host_warning_error_propagates_but_clocks_still_armed(self, policy, recorder, timers):
        def bad(seconds_left):
            raise RuntimeError("modal failed to render")

        sup = SessionSupervisor(policy, recorder.terminate, timers=timers, on_warning=bad).start()
        with pytest.raises(RuntimeError):
            timers.advance(29 * MIN)
        timers.advance(60)
        assert len(recorder.terminations) == 1

    def test_shared_guard(self, policy, recorder, timers):
        guard = TerminationGuard(recorder.terminate)
        a = SessionSupervisor(policy, guard, timers=timers, session_id="a").start()
        b = SessionSupervisor(policy, guard, timers=timers, session_id="b").start()
        timers.advance(30 * MIN)
        assert sorted(sid for sid, _ in recorder.terminations) == ["a", "b"]
        assert a.state is b.state is SessionState.EXPIRED

    def test_snapshot(self, policy, recorder, timers):
        sup = _supervisor(policy, recorder, timers)
        timers.advance(90)
        snap = sup.snapshot()
        assert snap["session_id"] == "s-1"
        assert snap["state"] == "active"
        assert snap["seconds_since_activity"] == 90
        assert snap["seconds_remaining"] is None
