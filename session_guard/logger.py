"""
Logging setup for the session guard.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False


def configure(level: Optional[str] = None, log_path: Optional[Path] = None) -> None:
    """
    Configure loguru for the service.

    Runs once per process; later calls are ignored so that library code can
    call get_logger() freely without clobbering the host's sinks.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return

    from .config import config

    level = level or config.log_level
    if log_path is None and config.log_file:
        log_path = Path(config.log_file)

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level=level)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_path,
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
        )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
