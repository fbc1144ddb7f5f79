"""Portable smoke requests for Quantum Leap Copilot.

- Checks /healthz and /metrics
- Lists flows and runs a cheap one (quick_tip)
- Pushes a signal and reads it back
- Exits non-zero on failure (so Make/CI can trust it)

Env:
  API_BASE: base URL of API (default: http://127.0.0.1:8000)
  API_KEY:  API key header value (default: dev-key)
"""

from __future__ import annotations

import os
import sys
import time

import requests


API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000").rstrip("/")
API_KEY = os.getenv("API_KEY", "dev-key")
HEADERS = {"X-API-Key": API_KEY, "Content-Type": "application/json"}


def _check(name: str, resp: requests.Response, expected: int = 200) -> bool:
    ok = resp.status_code == expected
    mark = "✅" if ok else "❌"
    print(f"{mark} {name}: {resp.status_code} {resp.text[:200]}")
    return ok


def main() -> int:
    timeout_s = float(os.getenv("SMOKE_TIMEOUT", "120"))
    results = []

    results.append(_check("healthz", requests.get(f"{API_BASE}/healthz", timeout=10)))
    results.append(_check("metrics", requests.get(f"{API_BASE}/metrics", timeout=10)))
    results.append(
        _check(
            "list flows",
            requests.get(f"{API_BASE}/api/v1/flows", headers=HEADERS, timeout=10),
        )
    )

    t0 = time.time()
    resp = requests.post(
        f"{API_BASE}/api/v1/flows/quick_tip",
        headers=HEADERS,
        json={"userActionContext": "general"},
        timeout=timeout_s,
    )
    print(f"   quick_tip latency: {int((time.time() - t0) * 1000)} ms")
    results.append(_check("run quick_tip", resp))

    signal = f"Smoke signal at {time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())}"
    results.append(
        _check(
            "pushSignal",
            requests.post(f"{API_BASE}/pushSignal", json={"signal": signal}, timeout=30),
        )
    )
    resp = requests.get(
        f"{API_BASE}/api/v1/signals", headers=HEADERS, params={"limit": 1}, timeout=10
    )
    results.append(_check("read signals", resp))
    if resp.ok and resp.json().get("signals", [{}])[0].get("strategy") != signal:
        print("❌ latest signal does not match the pushed one")
        results.append(False)

    failed = results.count(False)
    print(f"\n{len(results) - failed}/{len(results)} checks passed")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
