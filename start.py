"""
Convenience launcher — starts the session guard API.

Usage:
    python start.py                         # production policy (30 min / 1 min)
    python start.py --timeout 20 --lead 10  # short demo policy, in seconds
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys


def start_server(env: dict) -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "session_guard.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
        env=env,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the session guard API")
    parser.add_argument("--timeout", type=float, help="Idle timeout in seconds")
    parser.add_argument("--lead", type=float, help="Warning lead time in seconds")
    parser.add_argument("--log-level", default=None, help="DEBUG | INFO | WARNING")
    args = parser.parse_args()

    env = dict(os.environ)
    if args.timeout is not None:
        env["SG_IDLE_TIMEOUT_SECONDS"] = str(args.timeout)
    if args.lead is not None:
        env["SG_WARNING_LEAD_SECONDS"] = str(args.lead)
    if args.log_level:
        env["SG_LOG_LEVEL"] = args.log_level.upper()

    print("Starting session guard…")
    proc = start_server(env)

    print("\nAPI → http://127.0.0.1:8766  (docs at /docs)")
    print("Press Ctrl+C to stop.\n")

    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
