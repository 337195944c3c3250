"""
FastAPI application — session guard host API.
Runs on http://127.0.0.1:8766 by default.

The session registry lives on app.state so that each call to create_app()
produces a fully independent instance with no shared module-level globals.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..idle.registry import SessionRegistry
from ..idle.timers import AsyncioTimerHost, TimerHost
from ..logger import get_logger
from ..policy import SessionTimeoutPolicy

log = get_logger()


def create_app(timers: Optional[TimerHost] = None) -> FastAPI:
    """
    Build the app. *timers* defaults to the running event loop; tests pass a
    ManualTimerHost to drive the idle clock by hand.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        host = timers or AsyncioTimerHost(asyncio.get_running_loop())
        app.state.registry = SessionRegistry(
            host,
            SessionTimeoutPolicy.from_config(config),
            countdown_interval=config.countdown_interval_s,
        )
        log.info("Session guard ready")

        yield

        app.state.registry.shutdown()
        log.info("Session guard stopped")

    app = FastAPI(
        title="Session Guard",
        description="Idle-timeout session supervisor",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import sessions

    app.include_router(sessions.router)

    @app.get("/health")
    def health(request: Request):
        registry = getattr(request.app.state, "registry", None)
        live = 0 if registry is None else sum(1 for e in registry.all() if not e.invalidated)
        return {"status": "ok", "version": "0.1.0", "sessions": live}

    return app


app = create_app()
