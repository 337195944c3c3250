"""
Central configuration for the session guard service.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


def _default_signals() -> List[str]:
    return ["pointer_down", "pointer_move", "key_press", "scroll", "touch_start", "click"]


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8766

    # Idle policy
    idle_timeout_seconds: float = 1800.0     # hard deadline after last activity
    warning_lead_seconds: float = 60.0       # warning fires this long before the deadline
    activity_signals: List[str] = field(default_factory=_default_signals)

    # Countdown
    countdown_interval_s: float = 1.0

    # Logging
    log_level: str = "INFO"
    log_file: str = ""                       # empty → console only

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (SG_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"SG_{k.upper()}"
            if env_key in os.environ:
                raw = os.environ[env_key]
                current = getattr(cfg, k)
                if isinstance(current, list):
                    setattr(cfg, k, [s.strip() for s in raw.split(",") if s.strip()])
                else:
                    setattr(cfg, k, type(current)(raw))
        return cfg


# Module-level singleton
config = Config.load()
