"""
Session Timeout Policy — the immutable timing contract a supervisor runs under.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Iterable, Optional

from .telemetry.signals import DEFAULT_ACTIVITY_SIGNALS, EventKind

if TYPE_CHECKING:
    from .config import Config

DEFAULT_TIMEOUT_MINUTES = 30
DEFAULT_WARNING_MINUTES = 1


class PolicyError(ValueError):
    """Raised when a timeout policy is internally inconsistent."""


@dataclass(frozen=True)
class SessionTimeoutPolicy:
    total_idle_timeout: float = DEFAULT_TIMEOUT_MINUTES * 60.0    # seconds
    warning_lead_time: float = DEFAULT_WARNING_MINUTES * 60.0     # seconds
    activity_signals: FrozenSet[EventKind] = field(default=DEFAULT_ACTIVITY_SIGNALS)

    def __post_init__(self):
        if not self.total_idle_timeout > 0:
            raise PolicyError(
                f"total_idle_timeout must be positive, got {self.total_idle_timeout}"
            )
        if not 0 < self.warning_lead_time < self.total_idle_timeout:
            raise PolicyError(
                "warning_lead_time must satisfy 0 < lead < total_idle_timeout "
                f"(lead={self.warning_lead_time}, total={self.total_idle_timeout})"
            )
        try:
            signals = frozenset(EventKind(s) for s in self.activity_signals)
        except ValueError as e:
            raise PolicyError(f"unknown activity signal: {e}") from e
        if EventKind.VISIBILITY in signals:
            raise PolicyError("visibility is reconciled separately and is not an activity signal")
        object.__setattr__(self, "activity_signals", signals)

    @property
    def warning_delay(self) -> float:
        """Idle time after which the warning fires."""
        return self.total_idle_timeout - self.warning_lead_time

    @property
    def warning_seconds(self) -> int:
        """Whole seconds announced to on_warning; rounds down, never grants extra time."""
        return int(math.floor(self.warning_lead_time))

    @classmethod
    def from_minutes(
        cls,
        timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES,
        warning_minutes: float = DEFAULT_WARNING_MINUTES,
        activity_signals: Optional[Iterable[EventKind | str]] = None,
    ) -> "SessionTimeoutPolicy":
        return cls(
            total_idle_timeout=timeout_minutes * 60.0,
            warning_lead_time=warning_minutes * 60.0,
            activity_signals=frozenset(activity_signals) if activity_signals is not None
            else DEFAULT_ACTIVITY_SIGNALS,
        )

    @classmethod
    def from_config(cls, cfg: "Config") -> "SessionTimeoutPolicy":
        return cls(
            total_idle_timeout=float(cfg.idle_timeout_seconds),
            warning_lead_time=float(cfg.warning_lead_seconds),
            activity_signals=frozenset(cfg.activity_signals),
        )
