"""
/sessions — create supervised sessions, feed them activity, continue or end them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ...api.schemas import SessionCreateIn, SessionListOut, SessionOut, SignalAckOut, SignalEventIn
from ...idle.registry import SessionEntry, SessionExpired, SessionRegistry
from ...policy import PolicyError, SessionTimeoutPolicy
from ...telemetry.sources.browser import parse_browser_event

router = APIRouter(prefix="/sessions", tags=["sessions"])

_EXPIRED_DETAIL = "Your session has expired due to inactivity. Please log in again."


def _get_registry(request: Request) -> SessionRegistry:
    """Dependency — resolved by the app lifespan state."""
    return request.app.state.registry


def _entry_or_404(registry: SessionRegistry, session_id: str) -> SessionEntry:
    try:
        return registry.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")


def _out(entry: SessionEntry) -> SessionOut:
    return SessionOut(**entry.snapshot())


# Handlers are async so that every timer is armed from the event loop thread.

@router.post("", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreateIn | None = None,
    registry: SessionRegistry = Depends(_get_registry),
):
    """Start supervising a new session; unset fields fall back to the server policy."""
    base = registry.default_policy
    body = body or SessionCreateIn()
    try:
        policy = SessionTimeoutPolicy(
            total_idle_timeout=body.idle_timeout_seconds or base.total_idle_timeout,
            warning_lead_time=body.warning_lead_seconds or base.warning_lead_time,
            activity_signals=frozenset(body.activity_signals)
            if body.activity_signals is not None else base.activity_signals,
        )
    except PolicyError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _out(registry.create(policy))


@router.get("", response_model=SessionListOut)
async def list_sessions(registry: SessionRegistry = Depends(_get_registry)):
    return SessionListOut(sessions=[_out(e) for e in registry.all()])


@router.get("/{session_id}", response_model=SessionOut)
async def get_session(session_id: str, registry: SessionRegistry = Depends(_get_registry)):
    return _out(_entry_or_404(registry, session_id))


@router.post("/{session_id}/events", response_model=SignalAckOut, status_code=status.HTTP_202_ACCEPTED)
async def ingest_event(
    session_id: str,
    event: SignalEventIn,
    registry: SessionRegistry = Depends(_get_registry),
):
    """Accept one raw interaction or visibility event from the front end."""
    entry = _entry_or_404(registry, session_id)
    payload = {"type": event.type, "data": event.data}
    if event.timestamp is not None:
        payload["timestamp"] = event.timestamp
    parsed = parse_browser_event(payload)
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"Unrecognised event type: {event.type!r}")
    try:
        was_reset = registry.publish(session_id, parsed)
    except SessionExpired:
        raise HTTPException(status_code=401, detail=_EXPIRED_DETAIL)
    return SignalAckOut(reset=was_reset, state=entry.supervisor.state.value)


@router.post("/{session_id}/continue", response_model=SessionOut)
async def continue_session(session_id: str, registry: SessionRegistry = Depends(_get_registry)):
    """The "Continue Session" button."""
    _entry_or_404(registry, session_id)
    try:
        entry = registry.continue_session(session_id)
    except SessionExpired:
        raise HTTPException(status_code=401, detail=_EXPIRED_DETAIL)
    return _out(entry)


@router.post("/{session_id}/logout", response_model=SessionOut)
async def logout(session_id: str, registry: SessionRegistry = Depends(_get_registry)):
    """The "Logout Now" button."""
    _entry_or_404(registry, session_id)
    try:
        entry = registry.logout(session_id)
    except SessionExpired:
        raise HTTPException(status_code=401, detail=_EXPIRED_DETAIL)
    return _out(entry)


@router.delete("/{session_id}")
async def remove_session(session_id: str, registry: SessionRegistry = Depends(_get_registry)):
    if not registry.remove(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "removed"}
