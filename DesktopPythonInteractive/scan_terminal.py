#!/usr/bin/env python3
"""
scan_terminal.py

Purpose:
  Forward a keyboard-wedge scanner to the Pack Tracker API.
  - Reads raw scanner input from stdin (the scanner "types" into this terminal).
  - Posts each chunk, terminator included, to /scanner/fragments so the
    service buffers and auto-submits it after the configured scanner delay.
  - Polls /scanner/state and prints every new scan outcome as JSON.
  - When the service asks whether the previous pack sold out, prompts y/n.

API:
  Base: http://localhost:8089/api/v1
  Auth: X-API-Key: <token> (only when the service has API_KEY set)
  POST /scanner/select       {"slot_id": n}
  POST /scanner/select-next
  POST /scanner/fragments    {"text": "..."}
  GET  /scanner/state
  POST /scanner/confirm      {"sold_out": true|false}

Auth precedence:
  1) --token <value> (CLI)
  2) env PACKTRACK_API_KEY

Examples:
  python scan_terminal.py --slot 1
  python scan_terminal.py --next --base-url http://192.168.1.20:8089/api/v1

Exit codes:
  0 = success (stdin closed)
  1 = handled application error
  2 = network/HTTP error
"""

from __future__ import annotations
import os
import sys
import json
import time
import argparse
import requests
from typing import Any, Dict, Optional

DEFAULT_BASE_URL = "http://localhost:8089/api/v1"
POLL_INTERVAL = 0.1


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Stream scanner input to the Pack Tracker API.")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--slot", type=int, default=None,
                        help="Slot to scan into first (1-20).")
    target.add_argument("--next", action="store_true",
                        help="Let the service pick the next slot that needs attention.")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL,
                   help=f"Base API URL (default: {DEFAULT_BASE_URL})")
    p.add_argument("--token", default=None,
                   help="API key (X-API-Key). Overrides env PACKTRACK_API_KEY.")
    p.add_argument("--timeout", type=float, default=5.0,
                   help="HTTP timeout in seconds (default: 5)")
    p.add_argument("--wait", type=float, default=3.0,
                   help="Seconds to wait for an outcome after a terminator (default: 3)")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Verbose logging to stderr.")
    return p.parse_args()


def resolve_token(cli_token: Optional[str]) -> Optional[str]:
    if cli_token:
        return cli_token
    return os.getenv("PACKTRACK_API_KEY")


def build_headers(token: Optional[str]) -> Dict[str, str]:
    headers: Dict[str, str] = {"Accept": "application/json", "Content-Type": "application/json"}
    if token:
        headers["X-API-Key"] = token
    return headers


def vprint(enabled: bool, *args: Any) -> None:
    if enabled:
        print(*args, file=sys.stderr)


class ScannerClient:
    def __init__(self, base_url: str, token: Optional[str], timeout: float, verbose: bool) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verbose = verbose
        self.session = requests.Session()
        self.session.headers.update(build_headers(token))

    def _call(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        vprint(self.verbose, f"{method} {url} json={payload}")
        r = self.session.request(method, url, json=payload, timeout=self.timeout)
        if r.status_code >= 400:
            try:
                detail = r.json().get("message") or r.text
            except ValueError:
                detail = r.text
            raise requests.HTTPError(f"{method} {path} failed ({r.status_code}): {detail}", response=r)
        return r.json()

    def select(self, slot_id: Optional[int]) -> Dict[str, Any]:
        if slot_id is None:
            return self._call("POST", "/scanner/select-next")
        return self._call("POST", "/scanner/select", {"slot_id": slot_id})

    def send_fragment(self, text: str) -> Dict[str, Any]:
        return self._call("POST", "/scanner/fragments", {"text": text})

    def state(self) -> Dict[str, Any]:
        return self._call("GET", "/scanner/state")

    def confirm(self, sold_out: bool) -> Dict[str, Any]:
        return self._call("POST", "/scanner/confirm", {"sold_out": sold_out})


def wait_for_outcome(client: ScannerClient, previous_at: Optional[str], wait: float) -> Optional[Dict[str, Any]]:
    """Poll until the service reports an outcome newer than ``previous_at``."""

    deadline = time.monotonic() + wait
    while time.monotonic() < deadline:
        outcome = client.state().get("last_outcome")
        if outcome and outcome.get("at") != previous_at:
            return outcome
        time.sleep(POLL_INTERVAL)
    return None


def ask_sold_out(message: str) -> bool:
    # stdin belongs to the scanner, so read the answer from the controlling tty.
    try:
        with open("/dev/tty", "r", encoding="utf-8") as tty:
            print(f"{message} [y/N] ", end="", file=sys.stderr, flush=True)
            answer = tty.readline()
    except OSError:
        return False
    return answer.strip().lower() in ("y", "yes")


def main() -> int:
    args = parse_args()
    token = resolve_token(args.token)
    client = ScannerClient(args.base_url, token, args.timeout, args.verbose)

    try:
        if args.slot is not None or args.next:
            state = client.select(args.slot)
            print(f"Scanning into slot {state.get('selected_slot_id')}", file=sys.stderr)

        for line in sys.stdin:
            last = client.state().get("last_outcome") or {}
            accepted = client.send_fragment(line)
            if not accepted.get("auto_submit_armed"):
                continue
            outcome = wait_for_outcome(client, last.get("at"), args.wait)
            if outcome is None:
                print("ERROR: no outcome received for scan", file=sys.stderr)
                continue
            if outcome.get("status") == "confirmation_required":
                print(json.dumps(outcome, indent=2))
                outcome = client.confirm(ask_sold_out(outcome.get("message") or "Previous pack sold out?"))
            print(json.dumps(outcome, indent=2))
        return 0

    except requests.exceptions.RequestException as e:
        print(f"NETWORK_ERROR: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
