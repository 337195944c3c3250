"""
Activity Signal Source — the capability interface the idle scheduler listens
on, plus an in-process bus implementation for hosts that push events.

A source that cannot deliver a given kind simply refuses the subscription;
that is a degraded host, not an error.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Protocol


class EventKind(str, Enum):
    POINTER_DOWN = "pointer_down"
    POINTER_MOVE = "pointer_move"
    KEY_PRESS = "key_press"
    SCROLL = "scroll"
    TOUCH_START = "touch_start"
    CLICK = "click"
    VISIBILITY = "visibility"


DEFAULT_ACTIVITY_SIGNALS: FrozenSet[EventKind] = frozenset({
    EventKind.POINTER_DOWN,
    EventKind.POINTER_MOVE,
    EventKind.KEY_PRESS,
    EventKind.SCROLL,
    EventKind.TOUCH_START,
    EventKind.CLICK,
})


@dataclass
class SignalEvent:
    kind: EventKind
    timestamp: float = field(default_factory=time.time)
    visible: Optional[bool] = None    # only meaningful for VISIBILITY


SignalHandler = Callable[[SignalEvent], None]


class SignalSource(Protocol):
    def supports(self, kind: EventKind) -> bool: ...

    def subscribe(self, kind: EventKind, handler: SignalHandler) -> bool: ...

    def unsubscribe(self, kind: EventKind, handler: SignalHandler) -> None: ...


class NullSignalSource:
    """A host with no event model at all — every subscription is refused."""

    def supports(self, kind: EventKind) -> bool:
        return False

    def subscribe(self, kind: EventKind, handler: SignalHandler) -> bool:
        return False

    def unsubscribe(self, kind: EventKind, handler: SignalHandler) -> None:
        return None


class SignalBus:
    """
    In-process signal source. The host publishes SignalEvents; subscribed
    handlers for that kind are called synchronously, in subscription order.

    Usage:
        bus = SignalBus()
        bus.subscribe(EventKind.CLICK, handler)
        bus.publish(SignalEvent(EventKind.CLICK))
    """

    def __init__(self, kinds: Optional[Iterable[EventKind]] = None):
        self._kinds: FrozenSet[EventKind] = frozenset(kinds) if kinds is not None else frozenset(EventKind)
        self._handlers: Dict[EventKind, List[SignalHandler]] = {}

    def supports(self, kind: EventKind) -> bool:
        return kind in self._kinds

    def subscribe(self, kind: EventKind, handler: SignalHandler) -> bool:
        if kind not in self._kinds:
            return False
        handlers = self._handlers.setdefault(kind, [])
        if handler not in handlers:
            handlers.append(handler)
        return True

    def unsubscribe(self, kind: EventKind, handler: SignalHandler) -> None:
        handlers = self._handlers.get(kind)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, kind: Optional[EventKind] = None) -> int:
        if kind is not None:
            return len(self._handlers.get(kind, []))
        return sum(len(h) for h in self._handlers.values())

    def publish(self, event: SignalEvent) -> int:
        """Dispatch *event*; returns the number of handlers called."""
        # copy: a handler may unsubscribe (teardown) mid-dispatch
        handlers = list(self._handlers.get(event.kind, []))
        for handler in handlers:
            handler(event)
        return len(handlers)
