"""
Entry point — start the session guard API.

Usage:
    python -m session_guard.main
    uvicorn session_guard.api.app:app --host 127.0.0.1 --port 8766 --reload
"""

import uvicorn

from .config import config
from .logger import configure


def main():
    configure()
    uvicorn.run(
        "session_guard.api.app:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
