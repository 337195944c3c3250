"""
Browser Signal Receiver — accepts raw DOM event names POSTed by the web
front end and converts them to SignalEvent objects for the session bus.
"""

from __future__ import annotations

import time
from typing import Any, Dict

from ..signals import EventKind, SignalEvent

# Mapping from DOM event names → internal event kinds
_EVENT_MAP: Dict[str, EventKind] = {
    "mousedown": EventKind.POINTER_DOWN,
    "pointerdown": EventKind.POINTER_DOWN,
    "mousemove": EventKind.POINTER_MOVE,
    "pointermove": EventKind.POINTER_MOVE,
    "keypress": EventKind.KEY_PRESS,
    "keydown": EventKind.KEY_PRESS,
    "scroll": EventKind.SCROLL,
    "wheel": EventKind.SCROLL,
    "touchstart": EventKind.TOUCH_START,
    "click": EventKind.CLICK,
    "visibilitychange": EventKind.VISIBILITY,
}


def known_event_types() -> list[str]:
    return sorted(_EVENT_MAP)


def parse_browser_event(payload: Dict[str, Any]) -> SignalEvent | None:
    """
    Parse a raw browser payload into a SignalEvent.
    Returns None if the event type is unknown.

    Expected payload shape:
    {
        "type": "visibilitychange",
        "timestamp": 1700000000.123,   # optional, defaults to now
        "data": { "visibilityState": "visible" }
    }
    """
    raw_type = str(payload.get("type", "")).lower()
    kind = _EVENT_MAP.get(raw_type)
    if kind is None:
        return None

    data = payload.get("data") or {}
    timestamp = payload.get("timestamp")
    timestamp = float(timestamp) if timestamp is not None else time.time()

    visible = None
    if kind is EventKind.VISIBILITY:
        if "visible" in data:
            visible = bool(data["visible"])
        else:
            visible = data.get("visibilityState", "visible") == "visible"

    return SignalEvent(kind=kind, timestamp=timestamp, visible=visible)
