"""Container healthcheck: verify the HTTP /health endpoint.

Uses stdlib only. Exit code 0 indicates healthy. The URL can be overridden
with QUERYGENIE_HEALTH_URL.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Final
from urllib.request import Request, urlopen

DEFAULT_URL: Final[str] = "http://127.0.0.1:8000/health"


def main() -> int:
    url = os.getenv("QUERYGENIE_HEALTH_URL", DEFAULT_URL)
    try:
        req = Request(url, headers={"User-Agent": "querygenie-mcp/healthcheck"})  # noqa: S310
        with urlopen(req, timeout=4) as resp:  # noqa: S310 - operator-supplied http URL
            if resp.status != 200:
                print(f"unexpected status: {resp.status}", file=sys.stderr)
                return 1
            data = json.loads(resp.read().decode("utf-8"))
    except Exception as exc:  # noqa: BLE001 - any failure means unhealthy
        print(f"healthcheck error: {exc}", file=sys.stderr)
        return 1

    if data.get("status") != "healthy":
        print(f"payload not healthy: {data}", file=sys.stderr)
        return 1
    if not data.get("engines"):
        print("server reports no engine adapters", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - used by Docker
    raise SystemExit(main())
