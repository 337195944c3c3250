"""
Pydantic schemas for the session guard API.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# ── Sessions ───────────────────────────────────────────────────────────────

class SessionCreateIn(BaseModel):
    idle_timeout_seconds: Optional[float] = Field(None, gt=0)
    warning_lead_seconds: Optional[float] = Field(None, gt=0)
    activity_signals: Optional[List[str]] = None


class SessionOut(BaseModel):
    session_id: str
    state: str = Field(..., description="active | warning | expired | stopped")
    epoch: int
    seconds_since_activity: float
    seconds_remaining: Optional[int] = None
    display: Optional[str] = None
    termination_reason: Optional[str] = None
    warnings: int = 0
    invalidated: bool = False
    timeout_seconds: float
    warning_lead_seconds: float


class SessionListOut(BaseModel):
    sessions: List[SessionOut]


# ── Signals ────────────────────────────────────────────────────────────────

class SignalEventIn(BaseModel):
    type: str = Field(..., description="Raw DOM event name, e.g. mousemove")
    timestamp: Optional[float] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class SignalAckOut(BaseModel):
    status: str = "accepted"
    reset: bool
    state: str
