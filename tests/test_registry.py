"""Tests for the host-side SessionRegistry."""

import pytest

from session_guard.idle.registry import SessionExpired, SessionRegistry
from session_guard.idle.scheduler import SessionState
from session_guard.policy import SessionTimeoutPolicy
from session_guard.telemetry.signals import EventKind, SignalEvent


@pytest.fixture()
def registry(timers):
    return SessionRegistry(timers, SessionTimeoutPolicy(total_idle_timeout=100, warning_lead_time=10))


class TestSessionRegistry:
    def test_create_starts_supervision(self, registry, timers):
        entry = registry.create()
        assert entry.supervisor.state is SessionState.ACTIVE
        assert registry.get(entry.supervisor.session_id) is entry

    def test_sessions_are_independent(self, registry, timers):
        a = registry.create()
        timers.advance(50)
        b = registry.create()
        timers.advance(50)
        assert a.invalidated
        assert not b.invalidated

    def test_publish_returns_reset_flag(self, registry, timers):
        entry = registry.create()
        sid = entry.supervisor.session_id
        timers.advance(5)
        assert registry.publish(sid, SignalEvent(EventKind.KEY_PRESS)) is True
        timers.advance(90)
        assert registry.publish(sid, SignalEvent(EventKind.KEY_PRESS)) is False

    def test_warning_counted(self, registry, timers):
        entry = registry.create()
        timers.advance(90)
        assert entry.warnings == 1

    def test_expired_session_refuses_actions(self, registry, timers):
        entry = registry.create()
        sid = entry.supervisor.session_id
        timers.advance(100)
        with pytest.raises(SessionExpired):
            registry.continue_session(sid)
        with pytest.raises(SessionExpired):
            registry.publish(sid, SignalEvent(EventKind.CLICK))

    def test_unknown_session_raises_key_error(self, registry):
        with pytest.raises(KeyError):
            registry.get("missing")

    def test_shutdown(self, registry, timers):
        registry.create()
        registry.create()
        registry.shutdown()
        assert registry.all() == []
        assert timers.pending() == 0
