"""
Idle Cycle Simulator — drives a running session guard through a full idle
cycle (activity, warning, continue, warning again, expiry) so you can watch
the state machine without a browser.

Usage:
    # Make sure the API is running first:
    #   python start.py
    # Then in a separate terminal:
    python scripts/simulate.py                        # 20 s timeout, 10 s warning
    python scripts/simulate.py --timeout 12 --lead 6
    python scripts/simulate.py --logout               # press "Logout Now" instead of waiting
"""

from __future__ import annotations

import argparse
import json
import time
import urllib.error
import urllib.request

API = "http://127.0.0.1:8766"


# ---------------------------------------------------------------------------
# Low-level HTTP helpers
# ---------------------------------------------------------------------------

def _request(method: str, path: str, body: dict | None = None) -> tuple[int, dict | None]:
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        f"{API}{path}",
        data=data,
        headers={"Content-Type": "application/json"},
        method=method,
    )
    try:
        with urllib.request.urlopen(req, timeout=3) as r:
            return r.status, json.loads(r.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read() or b"null")
    except (urllib.error.URLError, OSError) as e:
        print(f"  [!] API unreachable: {e}")
        return 0, None


def _event(session_id: str, event_type: str, data: dict | None = None) -> tuple[int, dict | None]:
    return _request("POST", f"/sessions/{session_id}/events", {
        "type": event_type,
        "timestamp": time.time(),
        "data": data or {},
    })


def _show(session_id: str) -> dict | None:
    _, body = _request("GET", f"/sessions/{session_id}")
    if body:
        remaining = body.get("display") or "-"
        print(f"    state={body['state']:<8} idle={body['seconds_since_activity']:6.1f}s  countdown={remaining}")
    return body


def _wait_for(session_id: str, states: set[str], limit_s: float) -> dict | None:
    deadline = time.time() + limit_s
    body = None
    while time.time() < deadline:
        body = _show(session_id)
        if body and body["state"] in states:
            return body
        time.sleep(1.0)
    return body


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------

def run(timeout_s: float, lead_s: float, logout: bool) -> None:
    status, body = _request("POST", "/sessions", {
        "idle_timeout_seconds": timeout_s,
        "warning_lead_seconds": lead_s,
    })
    if status != 201 or not body:
        print(f"  [!] Could not create session ({status}): {body}")
        return
    sid = body["session_id"]
    print(f"Session {sid} (timeout {timeout_s}s, warning {lead_s}s before)")

    print("\n1. User is busy for a few seconds")
    for _ in range(3):
        for kind in ("mousemove", "keypress", "scroll"):
            _event(sid, kind)
        _show(sid)
        time.sleep(1.0)

    print("\n2. User walks away — waiting for the warning")
    _wait_for(sid, {"warning"}, timeout_s)

    print("\n3. Mouse jiggle during the warning (ignored)")
    _, ack = _event(sid, "mousemove")
    print(f"    reset={ack and ack['reset']}")

    print("\n4. User clicks 'Continue Session'")
    _request("POST", f"/sessions/{sid}/continue")
    _show(sid)

    print("\n5. Idle again")
    _wait_for(sid, {"warning"}, timeout_s)

    if logout:
        print("\n6. User clicks 'Logout Now'")
        _request("POST", f"/sessions/{sid}/logout")
    else:
        print("\n6. Countdown runs out")
    final = _wait_for(sid, {"expired", "stopped"}, lead_s + 3)
    if final:
        print(f"\nEnded: {final['termination_reason']}")

    status, body = _event(sid, "click")
    print(f"Activity after expiry → {status} {body and body.get('detail')}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Session guard idle-cycle simulator")
    parser.add_argument("--timeout", type=float, default=20.0)
    parser.add_argument("--lead", type=float, default=10.0)
    parser.add_argument("--logout", action="store_true", help="Log out from the warning instead of waiting")
    args = parser.parse_args()

    print(f"Session guard simulator → {API}\n")
    run(args.timeout, args.lead, args.logout)


if __name__ == "__main__":
    main()
