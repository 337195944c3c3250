"""
Shared pytest fixtures and configuration.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from session_guard.api.app import create_app
from session_guard.idle.timers import ManualTimerHost
from session_guard.policy import SessionTimeoutPolicy
from session_guard.telemetry.signals import SignalBus


class Recorder:
    """Collects callback invocations for assertions."""

    def __init__(self):
        self.warnings: list[int] = []
        self.timeouts = 0
        self.terminations: list[tuple] = []
        self.ticks: list[int] = []

    def on_warning(self, seconds_left: int) -> None:
        self.warnings.append(seconds_left)

    def on_timeout(self) -> None:
        self.timeouts += 1

    def terminate(self, session_id, reason) -> None:
        self.terminations.append((session_id, reason))

    def on_tick(self, seconds: int) -> None:
        self.ticks.append(seconds)


@pytest.fixture()
def timers():
    return ManualTimerHost()


@pytest.fixture()
def bus():
    return SignalBus()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def policy():
    """Production defaults: 30 min idle timeout, warning 1 min before."""
    return SessionTimeoutPolicy.from_minutes(30, 1)


@pytest.fixture()
def app_timers():
    return ManualTimerHost()


@pytest.fixture()
def app(app_timers):
    """A fresh app per test, with the idle clock under test control."""
    return create_app(timers=app_timers)


@pytest_asyncio.fixture()
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
